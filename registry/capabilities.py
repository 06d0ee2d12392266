"""
Capability Mint Authority - Capability Registry

Issues capability tokens into the object store and checks presented ones.
A capability is only ever referenced by id: the registry resolves the id,
checks the kind and checks that the caller currently owns it. A token built
outside the registry is therefore never accepted.
"""

import logging
from typing import Optional, Type

from .exceptions import IssuanceError, ObjectNotFoundError, UnauthorizedError
from .schema import Capability, CapabilityKind
from .storage import ObjectStore


class CapabilityRegistry:
    """Issue and validate capability tokens."""

    def __init__(self, store: ObjectStore):
        self.store = store
        self.logger = logging.getLogger(__name__)

    def require(
        self,
        ctx,
        cap_id: Optional[str],
        kind: CapabilityKind,
        error_cls: Type[IssuanceError] = UnauthorizedError,
    ) -> Capability:
        """
        Resolve ``cap_id`` to a capability of ``kind`` held by the sender.

        Raises ``error_cls`` when the id is unknown, names something that is
        not a capability, has the wrong kind or is held by someone else.
        """
        if not cap_id:
            raise error_cls(f"No {kind.value} capability presented")

        try:
            cap = self.store.get(cap_id, Capability)
        except ObjectNotFoundError:
            raise error_cls(f"Capability {cap_id} not found")

        if cap.kind != kind:
            raise error_cls(f"Capability {cap_id} is {cap.kind.value}, expected {kind.value}")

        if not self.store.is_owned_by(cap_id, ctx.sender):
            raise error_cls(f"Capability {cap_id} is not held by {ctx.sender}")

        return cap

    def _issue(self, ctx, kind: CapabilityKind, owner: str, **fields) -> Capability:
        cap = Capability(id=ctx.fresh_id(), kind=kind, **fields)
        self.store.add(cap, owner)
        self.logger.info(f"Issued {kind.value} capability {cap.id} to {owner}")
        return cap

    def issue_super_admin(self, ctx) -> Capability:
        """Create the deployment's super-admin token, owned by the sender."""
        return self._issue(ctx, CapabilityKind.SUPER_ADMIN, ctx.sender)

    def issue_creation_capability(self, ctx, super_admin_id: str, target_owner: str) -> Capability:
        admin = self.require(ctx, super_admin_id, CapabilityKind.SUPER_ADMIN)
        return self._issue(
            ctx, CapabilityKind.COLLECTION_CREATION, target_owner, issued_by=admin.id
        )

    def issue_mint_capability(
        self,
        ctx,
        creation_cap_id: str,
        collection_id: str,
        max_supply: Optional[int],
        owner: str,
    ) -> Capability:
        creator = self.require(ctx, creation_cap_id, CapabilityKind.COLLECTION_CREATION)
        return self._issue(
            ctx,
            CapabilityKind.COLLECTION_MINT,
            owner,
            target_id=collection_id,
            max_supply=max_supply,
            issued_by=creator.id,
        )

    def issue_transfer_policy_capability(self, ctx, policy_id: str, owner: str) -> Capability:
        return self._issue(ctx, CapabilityKind.TRANSFER_POLICY, owner, target_id=policy_id)

    def held_by(self, address: str, kind: Optional[CapabilityKind] = None):
        """Capabilities currently owned by ``address``."""
        caps = self.store.owned_by(address, Capability)
        if kind is not None:
            caps = [c for c in caps if c.kind == kind]
        return caps
