"""
Vault core: contracts, configuration, logging, errors and the reentrancy guard.
"""

__all__ = []
