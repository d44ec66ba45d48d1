# FILE: chainpad/contracts/__init__.py
"""Contract repository: shared folders and wallet-owned Solidity files."""
