"""
Capability Mint Authority - Collection Manager

This module owns the collection lifecycle: creation of a collection together
with its configuration and collaborator objects, administrative updates to the
configuration, activation state and the signing policy.

Updates never edit a stored configuration in place. A candidate is built from
the stored record plus the requested changes, validated against every
invariant and only then written back.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from nft.display import DisplayProvider, default_display_fields

from .capabilities import CapabilityRegistry
from .events import Event, EventEmitter, EventType
from .exceptions import InvalidAuthorityError, InvalidConfigurationError, NotAdminError
from .policy import validate_configuration, validate_creators
from .schema import (
    Capability,
    CapabilityKind,
    CollectionConfiguration,
    CollectionParams,
    CollectionRecord,
    CollectionStatus,
    VersionRecord,
    utc_now,
)
from .storage import ObjectStore
from .version import VersionGate


# Flat update keys -> (section, field) of the configuration
UPDATABLE_FIELDS = {
    'mint_enabled': (None, 'mint_enabled'),
    'max_supply': (None, 'max_supply'),
    'signing_required': ('signing', 'required'),
    'signing_public_key': ('signing', 'public_key'),
    'payment_enabled': ('payment', 'enabled'),
    'payment_amount': ('payment', 'amount'),
    'payment_receiver': ('payment', 'receiver'),
    'commission_enabled': ('commission', 'enabled'),
    'commission_amount': ('commission', 'amount'),
    'commission_receiver': ('commission', 'receiver'),
}

POLICY_SECTIONS = ('signing', 'payment', 'commission')


@dataclass
class CreatedCollection:
    """Everything produced by a successful collection creation."""
    collection: CollectionRecord
    configuration: CollectionConfiguration
    mint_capability: Capability
    transfer_policy_capability: Capability
    display_id: str
    royalty_id: str
    transfer_policy_id: str
    events: List[Event] = field(default_factory=list)


class CollectionManager:
    """Collection creation and configuration state machine."""

    def __init__(
        self,
        store: ObjectStore,
        capabilities: CapabilityRegistry,
        version_gate: VersionGate,
        display: DisplayProvider,
        events: EventEmitter,
    ):
        self.store = store
        self.capabilities = capabilities
        self.version_gate = version_gate
        self.display = display
        self.events = events
        self.logger = logging.getLogger(__name__)

    def get_configuration(self, config_id: str) -> CollectionConfiguration:
        return self.store.get(config_id, CollectionConfiguration)

    def get_collection(self, collection_id: str) -> CollectionRecord:
        return self.store.get(collection_id, CollectionRecord)

    # Creation

    def create_collection(
        self, ctx, version: VersionRecord, creation_cap_id: str, params: CollectionParams
    ) -> CreatedCollection:
        """
        Create a collection, its configuration and collaborator objects.

        Every check runs before the first object is written.
        """
        self.version_gate.check_record(version)
        self.capabilities.require(ctx, creation_cap_id, CapabilityKind.COLLECTION_CREATION)

        validate_creators(params.creators, params.shares, params.royalty_bps)
        self.display.validate_royalty(params.creators, params.shares, params.royalty_bps)

        collection_id = ctx.fresh_id()
        config = CollectionConfiguration(
            id=ctx.fresh_id(),
            collection_id=collection_id,
            version=version.version,
            status=CollectionStatus.ACTIVE,
            signing=params.signing,
            max_supply=params.max_supply,
            current_supply=0,
            mint_enabled=params.mint_enabled,
            payment=params.payment,
            commission=params.commission,
            update_authority=version.admin_id,
        )
        validate_configuration(config)

        fields = params.display_fields or default_display_fields(
            params.name, params.description, params.media_url
        )
        display = self.display.attach_display_metadata(ctx, collection_id, fields)
        royalty = self.display.attach_creator_royalty(
            ctx, collection_id, params.creators, params.shares, params.royalty_bps
        )
        policy = self.display.attach_transfer_policy(ctx, collection_id)
        policy_cap = self.capabilities.issue_transfer_policy_capability(ctx, policy.id, ctx.sender)
        mint_cap = self.capabilities.issue_mint_capability(
            ctx,
            creation_cap_id,
            collection_id,
            params.max_supply,
            params.mint_cap_receiver or ctx.sender,
        )

        config = config.model_copy(update={
            'mint_cap_id': mint_cap.id,
            'transfer_policy_id': policy.id,
        })
        collection = CollectionRecord(
            id=collection_id,
            name=params.name,
            description=params.description,
            creator=ctx.sender,
            config_id=config.id,
            display_id=display.id,
            royalty_id=royalty.id,
            transfer_policy_id=policy.id,
        )

        self.store.add(collection, ctx.sender)
        self.store.add(config, ctx.sender)
        for object_id in (collection.id, config.id, display.id, royalty.id, policy.id):
            self.store.share(object_id)

        event = self.events.emit(
            EventType.COLLECTION_CREATED, ctx,
            collection_id=collection.id,
            config_id=config.id,
            name=collection.name,
            creator=ctx.sender,
            version=config.version,
            mint_cap_id=mint_cap.id,
            mint_cap_owner=params.mint_cap_receiver or ctx.sender,
            transfer_policy_id=policy.id,
            transfer_policy_cap_id=policy_cap.id,
            display_id=display.id,
            royalty_id=royalty.id,
            creators=list(royalty.creators),
            shares=list(royalty.shares),
            royalty_bps=royalty.royalty_bps,
            **config.policy_fields(),
        )

        self.logger.info(f"Created collection {collection.id} ({collection.name}) config={config.id}")
        return CreatedCollection(
            collection=collection,
            configuration=config,
            mint_capability=mint_cap,
            transfer_policy_capability=policy_cap,
            display_id=display.id,
            royalty_id=royalty.id,
            transfer_policy_id=policy.id,
            events=[event],
        )

    # Administrative updates

    def _require_authority(self, ctx, config: CollectionConfiguration, cap_id: str, error_cls) -> None:
        self.capabilities.require(ctx, cap_id, CapabilityKind.SUPER_ADMIN, error_cls)
        if cap_id != config.update_authority:
            raise error_cls(f"Capability {cap_id} is not the update authority of {config.id}")

    def _build_candidate(
        self, config: CollectionConfiguration, changes: Dict[str, Any]
    ) -> CollectionConfiguration:
        data = config.model_dump()
        for key, value in changes.items():
            if key in POLICY_SECTIONS:
                if isinstance(value, BaseModel):
                    value = value.model_dump()
                elif value is not None and not isinstance(value, dict):
                    raise InvalidConfigurationError(f"Section {key} must be a policy or a mapping")
                data[key].update(value or {})
                continue
            if key not in UPDATABLE_FIELDS:
                raise InvalidConfigurationError(f"Unknown configuration field: {key}")
            section, name = UPDATABLE_FIELDS[key]
            if section is None:
                data[name] = value
            else:
                data[section][name] = value

        data['updated_at'] = utc_now()
        try:
            return CollectionConfiguration.model_validate(data)
        except ValidationError as e:
            raise InvalidConfigurationError(f"Invalid configuration update: {e}") from e

    def update_configuration(
        self, ctx, admin_cap_id: str, config_id: str, **changes
    ) -> List[Event]:
        """
        Apply policy changes to a configuration atomically.

        Accepts flat keys (``payment_amount=100``) or whole sections
        (``payment=PaymentPolicy(...)``). Supply and status are not settable
        here.
        """
        config = self.get_configuration(config_id)
        self.version_gate.check_config(config)
        self._require_authority(ctx, config, admin_cap_id, NotAdminError)

        candidate = self._build_candidate(config, changes)
        validate_configuration(candidate)

        old_fields = config.policy_fields()
        new_fields = candidate.policy_fields()
        changed = {
            name: {'old': old_fields[name], 'new': new_fields[name]}
            for name in new_fields
            if old_fields[name] != new_fields[name]
        }
        if not changed:
            return []

        self.store.update(candidate)
        event = self.events.emit(
            EventType.CONFIGURATION_UPDATED, ctx,
            config_id=config.id,
            collection_id=config.collection_id,
            changes=changed,
        )
        self.logger.info(f"Updated configuration {config.id}: {sorted(changed)}")
        return [event]

    def _set_status(self, ctx, config_id: str, caller_cap_id: str, status: CollectionStatus):
        config = self.get_configuration(config_id)
        self.version_gate.check_config(config)
        self._require_authority(ctx, config, caller_cap_id, InvalidAuthorityError)

        updated = config.model_copy(update={'status': status, 'updated_at': utc_now()})
        self.store.update(updated)

        event_type = (
            EventType.COLLECTION_ACTIVATED if status == CollectionStatus.ACTIVE
            else EventType.COLLECTION_DEACTIVATED
        )
        self.events.emit(
            event_type, ctx,
            config_id=config.id,
            collection_id=config.collection_id,
            previous_status=config.status.value,
        )
        return updated

    def activate(self, ctx, config_id: str, caller_cap_id: str) -> CollectionConfiguration:
        """Set status ACTIVE. Calling it on an active collection is allowed."""
        return self._set_status(ctx, config_id, caller_cap_id, CollectionStatus.ACTIVE)

    def deactivate(self, ctx, config_id: str, caller_cap_id: str) -> CollectionConfiguration:
        return self._set_status(ctx, config_id, caller_cap_id, CollectionStatus.INACTIVE)

    def update_signing_policy(
        self,
        ctx,
        config_id: str,
        caller_cap_id: str,
        required: bool,
        public_key: Optional[str] = None,
    ) -> CollectionConfiguration:
        """Toggle signed mints; keeps the registered key unless a new one is given."""
        config = self.get_configuration(config_id)
        self.version_gate.check_config(config)
        self._require_authority(ctx, config, caller_cap_id, InvalidAuthorityError)

        changes: Dict[str, Any] = {'signing_required': required}
        if public_key is not None:
            changes['signing_public_key'] = public_key
        candidate = self._build_candidate(config, changes)
        validate_configuration(candidate)

        self.store.update(candidate)
        self.events.emit(
            EventType.SIGNING_POLICY_UPDATED, ctx,
            config_id=config.id,
            collection_id=config.collection_id,
            required=candidate.signing.required,
            public_key=candidate.signing.public_key,
            previous_required=config.signing.required,
        )
        return candidate
