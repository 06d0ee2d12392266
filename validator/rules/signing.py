"""
Signing Authority Rule

When a collection requires signed mints, an off-chain authority approves each
request by signing ``hash(salt)``. The rule verifies that signature against
the public key registered in the configuration.
"""

from crypto.verifier import CryptographicVerifier
from registry.exceptions import InvalidSignerError, MissingSaltError, MissingSignatureError

from validator.core import MintContext, MintRule


class SigningRule(MintRule):
    """Signature over the hashed salt must verify against the registered key."""

    def __init__(self, verifier: CryptographicVerifier):
        super().__init__(
            name="signing",
            description="Mint approved by the registered signing authority"
        )
        self.verifier = verifier

    def is_applicable(self, context: MintContext) -> bool:
        return self.enabled and context.config.signing.required

    def validate(self, context: MintContext) -> None:
        if not context.salt:
            raise MissingSaltError("Signed mint requires a salt")
        if not context.signature:
            raise MissingSignatureError("Signed mint requires a signature")

        public_key = context.config.signing.public_key
        if not public_key:
            raise InvalidSignerError("No signing key registered")

        digest = self.verifier.hash(context.salt)
        if not self.verifier.verify_signature(context.signature, public_key, digest):
            raise InvalidSignerError(
                f"Signature does not verify against the signing key of {context.config.id}"
            )
