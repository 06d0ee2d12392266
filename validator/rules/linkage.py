"""
Capability Linkage Rule

Checks that the presented mint capability, the stored configuration and the
requested collection all refer to each other. The capability may be omitted
only for paid mints (public sale); the collection linkage is checked either way.
"""

from registry.capabilities import CapabilityRegistry
from registry.exceptions import InvalidCollectionError, NotAdminError
from registry.schema import CapabilityKind

from validator.core import MintContext, MintRule


class LinkageRule(MintRule):
    """Mint capability and collection must match the configuration."""

    def __init__(self, capabilities: CapabilityRegistry):
        super().__init__(
            name="linkage",
            description="Mint capability is held by the caller and bound to this collection"
        )
        self.capabilities = capabilities

    def validate(self, context: MintContext) -> None:
        config = context.config

        if context.mint_cap_id is None:
            if not context.paid:
                raise NotAdminError("Unpaid mint requires a mint capability")
        else:
            cap = self.capabilities.require(
                context.tx, context.mint_cap_id, CapabilityKind.COLLECTION_MINT, NotAdminError
            )
            if cap.id != config.mint_cap_id:
                raise NotAdminError(
                    f"Capability {cap.id} is not the mint capability of configuration {config.id}"
                )
            if cap.target_id != config.collection_id:
                raise InvalidCollectionError(
                    f"Capability {cap.id} is bound to collection {cap.target_id}"
                )
            context.mint_cap = cap

        if context.collection_id != config.collection_id:
            raise InvalidCollectionError(
                f"Configuration {config.id} belongs to collection {config.collection_id}, "
                f"not {context.collection_id}"
            )
