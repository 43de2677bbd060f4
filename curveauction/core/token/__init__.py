"""Fungible tokens consumed by the auction engine"""
from curveauction.core.token.erc20 import ERC20

__all__ = ["ERC20"]
