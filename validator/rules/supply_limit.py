"""
Supply Limit Enforcement Rule

This module implements the SupplyLimitRule class that validates whether
a mint would push the collection's supply past its maximum supply cap.
"""

from registry.exceptions import SupplyExceededError

from validator.core import MintContext, MintRule


class SupplyLimitRule(MintRule):
    """
    Validation rule that enforces maximum supply limits for collections.

    Each mint adds exactly one unit, so the check is
    ``current_supply + 1 <= max_supply``. Collections without a cap are
    unlimited.
    """

    def __init__(self):
        super().__init__(
            name="supply_limit",
            description="Enforces maximum supply limits for collections"
        )

        self.stats = {
            "validations_performed": 0,
            "rejected_over_limit": 0,
            "approved_within_limit": 0
        }

    def is_applicable(self, context: MintContext) -> bool:
        if not self.enabled:
            return False
        return context.config.max_supply is not None

    def validate(self, context: MintContext) -> None:
        self.stats["validations_performed"] += 1
        config = context.config

        if config.current_supply + 1 > config.max_supply:
            self.stats["rejected_over_limit"] += 1
            raise SupplyExceededError(
                f"Collection {config.collection_id} has minted {config.current_supply} "
                f"of {config.max_supply}"
            )

        self.stats["approved_within_limit"] += 1
        self.logger.debug(
            f"Supply check passed for {config.collection_id}: "
            f"{config.current_supply + 1}/{config.max_supply}"
        )
