"""
Version Compatibility Rule

Rejects mints against a configuration produced by a different logic version.
"""

from registry.version import check_version

from validator.core import MintContext, MintRule


class VersionRule(MintRule):
    """Configuration version must equal the compiled logic version."""

    def __init__(self, compiled_version: int = 1):
        super().__init__(
            name="version",
            description="Configuration was produced by the running logic version"
        )
        self.compiled_version = compiled_version

    def validate(self, context: MintContext) -> None:
        check_version(
            context.config.version,
            self.compiled_version,
            f"configuration {context.config.id}",
        )
