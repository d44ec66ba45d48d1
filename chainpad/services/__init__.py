# chainpad/services/__init__.py
"""Adapters around external collaborators: the Solidity compiler and the chain."""
