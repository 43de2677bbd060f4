"""Simulated host ledger: serial, atomic contract execution"""
from curveauction.core.chain.contract import (
    Contract,
    ContractHandle,
    external,
    view,
    nonreentrant,
)
from curveauction.core.chain.chain import Chain, Event, Frame

__all__ = [
    "Chain",
    "Event",
    "Frame",
    "Contract",
    "ContractHandle",
    "external",
    "view",
    "nonreentrant",
]
