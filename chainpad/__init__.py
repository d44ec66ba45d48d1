# FILE: chainpad/__init__.py
"""
ChainPad backend package.

Server half of a browser-based smart-contract IDE:
- Wallet login with signed session tokens
- Contract file tree (shared folders, wallet-owned files)
- Solidity compilation via solc
- Deployment packaging and write-back (signing stays in the wallet)
- Chat assistant with compile/deploy/generate commands
"""

__version__ = "0.3.0"
