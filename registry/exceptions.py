"""
Capability Mint Authority - Tagged Error Types

Every failure the authority can signal is a subclass of IssuanceError with a
stable ``code``. A failed call has no effect: the transaction boundary rolls
back any state touched before the error was raised.
"""

from typing import Optional


class IssuanceError(Exception):
    """Base exception for all authority failures."""

    code = "EIssuance"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.code)

    def __str__(self) -> str:
        message = super().__str__()
        if message == self.code:
            return message
        return f"{self.code}: {message}"


class UnauthorizedError(IssuanceError):
    """Presented capability is of the wrong kind, not held, or not linked."""
    code = "EUnauthorized"


class NotAdminError(IssuanceError):
    """Capability does not match the registered administrator."""
    code = "ENotAdmin"


class WrongVersionError(IssuanceError):
    """Object was produced by an incompatible logic version."""
    code = "EWrongVersion"


class NotUpgradeError(IssuanceError):
    """Migration target is not strictly greater than the current version."""
    code = "ENotUpgrade"


class InvalidAmountError(IssuanceError):
    """Payment amount is missing, non-positive or insufficient."""
    code = "EInvalidAmount"


class MissingSaltError(IssuanceError):
    code = "EMissingSalt"


class MissingSignatureError(IssuanceError):
    code = "EMissingSignature"


class InvalidSignerError(IssuanceError):
    """Signature does not verify against the registered public key."""
    code = "EInvalidSigner"


class MintDisabledError(IssuanceError):
    code = "EMintDisabled"


class InvalidCollectionError(IssuanceError):
    """Capability or request targets a different collection."""
    code = "EInvalidCollection"


class SupplyExceededError(IssuanceError):
    code = "ESupplyExceeded"


class InvalidMethodError(IssuanceError):
    """Paid/unpaid mint called against the opposite payment mode."""
    code = "EInvalidMethod"


class MintPaymentNotFoundError(IssuanceError):
    code = "EMintPaymentNotFound"


class MintPaymentReceiverNotFoundError(IssuanceError):
    code = "EMintPaymentReceiverNotFound"


class MintCommissionPaymentNotFoundError(IssuanceError):
    code = "EMintCommissionPaymentNotFound"


class MintCommissionPaymentReceiverNotFoundError(IssuanceError):
    code = "EMintCommissionPaymentReceiverNotFound"


class InvalidCommissionAmountError(IssuanceError):
    code = "EInvalidCommissionAmount"


class InvalidSupplyError(IssuanceError):
    """Supply cap is out of range or below the current supply."""
    code = "EInvalidSupply"


class InvalidAuthorityError(IssuanceError):
    """Caller is not the collection's update authority."""
    code = "EInvalidAuthority"


class InvalidCreatorsError(IssuanceError):
    """Creator list and share list are inconsistent."""
    code = "EInvalidCreators"


class ObjectNotFoundError(IssuanceError):
    """Referenced object does not exist or has an unexpected type."""
    code = "EObjectNotFound"


class AlreadyInitializedError(IssuanceError):
    code = "EAlreadyInitialized"


class InvalidConfigurationError(IssuanceError, ValueError):
    """Update names an unknown field or a value of the wrong type."""
    code = "EInvalidConfiguration"


ERROR_CODES = {
    cls.code: cls
    for cls in (
        UnauthorizedError, NotAdminError, WrongVersionError, NotUpgradeError,
        InvalidAmountError, MissingSaltError, MissingSignatureError,
        InvalidSignerError, MintDisabledError, InvalidCollectionError,
        SupplyExceededError, InvalidMethodError, MintPaymentNotFoundError,
        MintPaymentReceiverNotFoundError, MintCommissionPaymentNotFoundError,
        MintCommissionPaymentReceiverNotFoundError, InvalidCommissionAmountError,
        InvalidSupplyError, InvalidAuthorityError, InvalidCreatorsError,
        ObjectNotFoundError, AlreadyInitializedError, InvalidConfigurationError,
    )
}
