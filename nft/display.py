"""
Capability Mint Authority - Display and Royalty Collaborator

Collection creation plugs into a ``DisplayProvider`` to attach display
metadata, creator royalties and a transfer policy to a new collection. The
bundled ``StoreDisplayProvider`` keeps those objects in the object store next
to the collection so they can be shared alongside it.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from registry.schema import utc_now
from registry.storage import ObjectStore, register_model

from .exceptions import RoyaltyError


TOTAL_SHARE_BPS = 10_000


class Display(BaseModel):
    """Display template for every asset of a collection."""

    id: str
    collection_id: str
    fields: Dict[str, str] = Field(default_factory=dict)
    version: int = 1
    created_at: datetime = Field(default_factory=utc_now)


class RoyaltyRule(BaseModel):
    """Creator royalty split in basis points."""

    id: str
    collection_id: str
    royalty_bps: int = 0
    creators: List[str] = Field(default_factory=list)
    shares: List[int] = Field(default_factory=list)

    def share_of(self, creator: str) -> int:
        if creator not in self.creators:
            return 0
        return self.shares[self.creators.index(creator)]


class TransferPolicy(BaseModel):
    """Transfer/withdrawal policy controlled by a TRANSFER_POLICY capability."""

    id: str
    collection_id: str
    rules: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)


for _model in (Display, RoyaltyRule, TransferPolicy):
    register_model(_model)


def default_display_fields(name: str, description: str = "", media_url: str = "") -> Dict[str, str]:
    fields = {
        "name": "{name}",
        "description": "{description}",
        "image_url": "{media_url}",
        "collection": name,
    }
    if description:
        fields["collection_description"] = description
    if media_url:
        fields["collection_image_url"] = media_url
    return fields


def render_display(display: Display, values: Dict[str, str]) -> Dict[str, str]:
    """Fill ``{placeholder}`` templates with per-asset values."""
    rendered = {}
    for key, template in display.fields.items():
        try:
            rendered[key] = template.format(**values)
        except (KeyError, IndexError, ValueError):
            rendered[key] = template
    return rendered


def resolve_shares(creators: List[str], shares: List[int]) -> List[int]:
    """
    Validate explicit shares, or split evenly when none were given.

    An even split gives the rounding remainder to the first creator.
    """
    if not creators:
        return []
    if not shares:
        base, remainder = divmod(TOTAL_SHARE_BPS, len(creators))
        return [base + remainder] + [base] * (len(creators) - 1)
    if any(s < 0 for s in shares):
        raise RoyaltyError("Royalty shares must be non-negative")
    if sum(shares) != TOTAL_SHARE_BPS:
        raise RoyaltyError(f"Royalty shares total {sum(shares)} bps, expected {TOTAL_SHARE_BPS}")
    return list(shares)


class DisplayProvider(ABC):
    """Interface of the display/royalty collaborator."""

    @abstractmethod
    def attach_display_metadata(self, ctx, collection_id: str, fields: Dict[str, str]) -> Display:
        pass

    @abstractmethod
    def attach_creator_royalty(
        self, ctx, collection_id: str, creators: List[str], shares: List[int], royalty_bps: int
    ) -> RoyaltyRule:
        pass

    @abstractmethod
    def attach_transfer_policy(self, ctx, collection_id: str) -> TransferPolicy:
        pass

    def validate_royalty(self, creators: List[str], shares: List[int], royalty_bps: int) -> None:
        """Check royalty input before anything is persisted."""
        if royalty_bps < 0 or royalty_bps > TOTAL_SHARE_BPS:
            raise RoyaltyError(f"Royalty {royalty_bps} bps outside 0..{TOTAL_SHARE_BPS}")
        resolve_shares(creators, shares)


class StoreDisplayProvider(DisplayProvider):
    """Keeps display, royalty and transfer policy objects in the object store."""

    def __init__(self, store: ObjectStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    def attach_display_metadata(self, ctx, collection_id: str, fields: Dict[str, str]) -> Display:
        display = Display(id=ctx.fresh_id(), collection_id=collection_id, fields=dict(fields))
        self.store.add(display, ctx.sender)
        return display

    def attach_creator_royalty(
        self, ctx, collection_id: str, creators: List[str], shares: List[int], royalty_bps: int
    ) -> RoyaltyRule:
        self.validate_royalty(creators, shares, royalty_bps)
        rule = RoyaltyRule(
            id=ctx.fresh_id(),
            collection_id=collection_id,
            royalty_bps=royalty_bps,
            creators=list(creators),
            shares=resolve_shares(creators, shares),
        )
        self.store.add(rule, ctx.sender)
        self.logger.debug(f"Royalty {rule.royalty_bps} bps for {len(rule.creators)} creators on {collection_id}")
        return rule

    def attach_transfer_policy(self, ctx, collection_id: str) -> TransferPolicy:
        policy = TransferPolicy(id=ctx.fresh_id(), collection_id=collection_id)
        self.store.add(policy, ctx.sender)
        return policy

    def get_display(self, display_id: str) -> Optional[Display]:
        obj = self.store.find(display_id)
        return obj if isinstance(obj, Display) else None
