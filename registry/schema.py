"""
Capability Mint Authority - Registry Schema Models

This module defines the Pydantic models for capabilities, the version record,
collections, their mutable configuration and the asset records minted
against them.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .storage import register_model


U64_MAX = 2**64 - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CapabilityKind(str, Enum):
    """Capability kind enumeration."""
    SUPER_ADMIN = "super_admin"
    COLLECTION_CREATION = "collection_creation"
    COLLECTION_MINT = "collection_mint"
    TRANSFER_POLICY = "transfer_policy"


class CollectionStatus(str, Enum):
    """Collection lifecycle status."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Capability(BaseModel):
    """
    Unforgeable capability token.

    Holding the object is what authorizes an operation: the registry only
    accepts a capability that the object store holds under its id and that is
    currently owned by the caller.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Object id (hex)")
    kind: CapabilityKind
    target_id: Optional[str] = Field(None, description="Collection the capability is bound to")
    max_supply: Optional[int] = Field(None, description="Issuance bound recorded at creation")
    issued_by: Optional[str] = Field(None, description="Capability id that authorized issuance")
    created_at: datetime = Field(default_factory=utc_now)


class VersionRecord(BaseModel):
    """Process-wide logic version and its administrative owner."""

    id: str
    version: int = Field(..., ge=1)
    admin_id: str = Field(..., description="SuperAdminCapability id")
    updated_at: datetime = Field(default_factory=utc_now)


class SigningPolicy(BaseModel):
    """Off-chain signing authority policy."""

    required: bool = False
    public_key: Optional[str] = Field(None, description="Compressed or uncompressed secp256k1 key (hex)")

    @field_validator('public_key')
    @classmethod
    def normalize_public_key(cls, v):
        """Strip 0x prefix and lowercase; validity is checked by the policy layer."""
        if v is None:
            return v
        if v.startswith('0x'):
            v = v[2:]
        return v.lower() or None


class PaymentPolicy(BaseModel):
    """Mint price and where it is routed."""

    enabled: bool = False
    amount: Optional[int] = None
    receiver: Optional[str] = None


class CommissionPolicy(BaseModel):
    """Carve-out of the payment routed to a secondary receiver."""

    enabled: bool = False
    amount: Optional[int] = None
    receiver: Optional[str] = None


class CollectionRecord(BaseModel):
    """Collection identity, shared and readable by anyone."""

    id: str
    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field(default="")
    creator: str = Field(..., description="Address that created the collection")
    config_id: Optional[str] = None
    display_id: Optional[str] = None
    royalty_id: Optional[str] = None
    transfer_policy_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)


class CollectionConfiguration(BaseModel):
    """
    Mutable per-collection policy and counter state.

    Supply moves only through the mint engine, everything else only through
    administrative updates. Invariants are enforced by ``registry.policy``
    before any candidate configuration is committed.
    """

    id: str
    collection_id: str
    version: int = Field(..., ge=1)
    status: CollectionStatus = Field(default=CollectionStatus.ACTIVE)
    signing: SigningPolicy = Field(default_factory=SigningPolicy)
    max_supply: Optional[int] = None
    current_supply: int = Field(default=0, ge=0)
    mint_enabled: bool = True
    payment: PaymentPolicy = Field(default_factory=PaymentPolicy)
    commission: CommissionPolicy = Field(default_factory=CommissionPolicy)
    update_authority: str = Field(..., description="Admin capability id")
    mint_cap_id: Optional[str] = None
    transfer_policy_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.status == CollectionStatus.ACTIVE

    @property
    def remaining_supply(self) -> Optional[int]:
        if self.max_supply is None:
            return None
        return self.max_supply - self.current_supply

    def policy_fields(self) -> Dict[str, object]:
        """Flat view of every administratively settable field."""
        return {
            'status': self.status.value,
            'mint_enabled': self.mint_enabled,
            'max_supply': self.max_supply,
            'signing_required': self.signing.required,
            'signing_public_key': self.signing.public_key,
            'payment_enabled': self.payment.enabled,
            'payment_amount': self.payment.amount,
            'payment_receiver': self.payment.receiver,
            'commission_enabled': self.commission.enabled,
            'commission_amount': self.commission.amount,
            'commission_receiver': self.commission.receiver,
        }


class Attribute(BaseModel):
    """Single asset attribute; keys may repeat across entries."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    value: str


class AssetMetadata(BaseModel):
    """Display fields supplied with a mint request."""

    name: str = Field(..., min_length=1, max_length=256)
    description: str = Field(default="")
    media_url: str = Field(default="")

    @field_validator('media_url')
    @classmethod
    def validate_media_url(cls, v):
        """Validate media reference scheme if provided."""
        if v and not re.match(r'^(https?|ipfs|ar)://', v):
            raise ValueError('Media URL must use http(s), ipfs or ar scheme')
        return v


class AssetRecord(BaseModel):
    """A minted unit. Immutable once transferred to its receiver."""

    model_config = ConfigDict(frozen=True)

    id: str
    collection_id: str
    name: str
    description: str = ""
    media_url: str = ""
    attributes: List[Attribute] = Field(default_factory=list)
    serial: int = Field(..., ge=1, description="Supply value produced by this mint")
    minted_by: str
    minted_at: datetime = Field(default_factory=utc_now)

    def attribute_values(self, key: str) -> List[str]:
        """All values recorded under ``key``, in insertion order."""
        return [a.value for a in self.attributes if a.key == key]


class CollectionParams(BaseModel):
    """Parameters accepted by collection creation."""

    name: str = Field(..., min_length=1, max_length=128)
    description: str = Field(default="")
    media_url: str = Field(default="")
    display_fields: Dict[str, str] = Field(default_factory=dict)
    mint_enabled: bool = True
    max_supply: Optional[int] = None
    signing: SigningPolicy = Field(default_factory=SigningPolicy)
    payment: PaymentPolicy = Field(default_factory=PaymentPolicy)
    commission: CommissionPolicy = Field(default_factory=CommissionPolicy)
    creators: List[str] = Field(default_factory=list)
    shares: List[int] = Field(default_factory=list, description="Basis points per creator")
    royalty_bps: int = Field(default=0)
    mint_cap_receiver: Optional[str] = None


for _model in (Capability, VersionRecord, CollectionRecord, CollectionConfiguration, AssetRecord):
    register_model(_model)
