"""
Auction Factory - Deploys auction instances from a master template.

This module provides:
- Clone deployment of AuctionEntrypoint instances bound to creator parameters
- Deterministic address prediction (before the creating transaction)
- Operator-controlled replacement of the master template

Template pinning:
-----------------
Each clone records the template it was cloned from and the factory keeps an
indirection table auction -> template. update_master_model() only changes
which template future clones are bound to; existing instances keep theirs.

Address derivation:
-------------------
    auction = keccak256(0xff || factory || template || keccak256(params) || nonce)[-20:]

`nonce` counts auctions created by this factory, so the same parameters
submitted twice yield two distinct instances.
"""

from typing import Dict, List, Optional

from curveauction.core.auction.entrypoint import AuctionEntrypoint
from curveauction.core.auction.parameters import AuctionParameters
from curveauction.core.chain.contract import Contract, external, view
from curveauction.core.errors import InvalidParameters, InvalidTemplate, Unauthorized
from curveauction.crypto import compute_clone_address, normalize_address
from curveauction.utils.logger import get_logger
from curveauction.utils.validation import validate_address

logger = get_logger("factory")


class AuctionFactory(Contract):
    """
    Registry and deployer of auction instances.

    Attributes:
        operator: Account allowed to replace the master template
    """

    def __init__(self, chain, address: str, master_template: str):
        super().__init__(chain, address)
        self.operator = self.msg_sender
        self._master = self._require_template(master_template)

        self._nonce = 0
        self._auctions: List[str] = []
        self._templates: Dict[str, str] = {}  # auction -> template

        logger.info(f"Factory {address[:10]}... master template {self._master}")

    # =========================================================================
    # Deployment
    # =========================================================================

    @external
    def create_auction(self, params: AuctionParameters) -> str:
        """
        Deploy and initialise a new auction instance.

        Run through static_call() to learn the address without deploying.

        Args:
            params: Creation parameters (validated against the current time)

        Returns:
            Address of the new instance

        Raises:
            InvalidParameters: malformed parameters or window in the past
        """
        params.validate(now=self.now)
        params = params.normalized()

        template = self._master
        address = compute_clone_address(self.address, template, params.to_bytes(), self._nonce)

        self._nonce += 1
        self._auctions.append(address)
        self._templates[address] = template

        self.chain.deploy_clone(template, address)
        self._call(address, "initialize", params)

        self._emit(
            "AuctionCreated",
            auction=address,
            creator=params.creator,
            template=template,
            token_address=params.token_address,
        )
        logger.info(
            f"Auction #{len(self._auctions)} created at {address} "
            f"for creator {self.chain.label(params.creator)}"
        )
        return address

    @external
    def update_master_model(self, new_template: str) -> None:
        """
        Replace the template used for future auctions (operator only).

        Raises:
            Unauthorized: caller is not the operator
            InvalidTemplate: no auction template code at `new_template`
        """
        if self.msg_sender != self.operator:
            raise Unauthorized("Only the operator can update the master model")

        previous = self._master
        self._master = self._require_template(new_template)

        self._emit("MasterModelUpdated", previous=previous, template=self._master)
        logger.info(f"Master template {previous} -> {self._master}")

    # =========================================================================
    # Views
    # =========================================================================

    @view
    def master_auction_entry_point(self) -> str:
        """Template bound to auctions created from now on."""
        return self._master

    @view
    def predict_auction_address(self, params: AuctionParameters, nonce: Optional[int] = None) -> str:
        """
        Address create_auction(params) yields at `nonce` (default: the next one).

        Uses the current master template.
        """
        params.validate()
        if nonce is None:
            nonce = self._nonce
        return compute_clone_address(self.address, self._master, params.normalized().to_bytes(), nonce)

    @view
    def get_auctions(self) -> List[str]:
        """All instances in creation order."""
        return list(self._auctions)

    @view
    def auction_count(self) -> int:
        return len(self._auctions)

    @view
    def is_auction(self, address: str) -> bool:
        return normalize_address(address) in self._templates

    @view
    def template_of(self, auction: str) -> str:
        """Template an instance was bound to at creation."""
        auction = normalize_address(auction)
        if auction not in self._templates:
            raise InvalidParameters(f"{auction} was not created by this factory")
        return self._templates[auction]

    @view
    def stats(self) -> dict:
        return {
            "address": self.address,
            "operator": self.operator,
            "master_template": self._master,
            "auctions": len(self._auctions),
            "templates_in_use": len(set(self._templates.values())),
        }

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_template(self, template: str) -> str:
        valid, err = validate_address(template, "template")
        if not valid:
            raise InvalidTemplate(err)

        code = self.chain.get_code(template)
        if not isinstance(code, AuctionEntrypoint) or code.implementation is not None:
            raise InvalidTemplate(f"No auction template at {template}")
        return normalize_address(template)
