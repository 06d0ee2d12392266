"""
Mint State Rule

An inactive collection, or one with minting switched off, accepts no mints.
"""

from registry.exceptions import MintDisabledError

from validator.core import MintContext, MintRule


class MintStateRule(MintRule):

    def __init__(self):
        super().__init__(
            name="mint_state",
            description="Collection is active and minting is enabled"
        )

    def validate(self, context: MintContext) -> None:
        config = context.config
        if not config.is_active:
            raise MintDisabledError(f"Collection {config.collection_id} is {config.status.value}")
        if not config.mint_enabled:
            raise MintDisabledError(f"Minting disabled for collection {config.collection_id}")
