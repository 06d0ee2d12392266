"""
Capability Mint Authority - Service Interface

``IssuanceAuthority`` wires the registry, ledger, display collaborator,
validator chain and mint engine together and exposes the public operations.
Every operation takes a ``TxContext`` and runs as one atomic call: either all
of its effects and events commit, or none do.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from crypto.verifier import CryptographicVerifier
from ledger.coin import Coin
from ledger.exceptions import LedgerError
from ledger.ledger import Ledger
from mint.engine import MintAuthorizationEngine
from mint.payment import PaymentRouter
from nft.display import DisplayProvider, StoreDisplayProvider
from registry.capabilities import CapabilityRegistry
from registry.concurrency import TransactionManager, TxContext
from registry.events import Event, EventEmitter, EventType, JSONLinesSink, LoggingSink, MemorySink
from registry.exceptions import AlreadyInitializedError, ObjectNotFoundError
from registry.manager import CollectionManager, CreatedCollection
from registry.schema import (
    AssetRecord,
    Capability,
    CollectionConfiguration,
    CollectionParams,
    CollectionRecord,
    VersionRecord,
)
from registry.storage import ObjectStore
from registry.version import VersionGate
from validator import create_default_validator

from .config import ConfigurationError, ConfigurationManager, setup_logging


class IssuanceAuthority:
    """Public entry points of the capability mint authority."""

    def __init__(
        self,
        store: Optional[ObjectStore] = None,
        events: Optional[EventEmitter] = None,
        verifier: Optional[CryptographicVerifier] = None,
        display: Optional[DisplayProvider] = None,
        compiled_version: int = 1,
        allow_faucet: bool = True,
        authority_id: str = "capmint",
    ):
        self.logger = logging.getLogger(__name__)
        self.authority_id = authority_id
        self.compiled_version = compiled_version
        self.allow_faucet = allow_faucet

        self.store = store if store is not None else ObjectStore()
        self.emitter = events if events is not None else EventEmitter()
        self.verifier = verifier or CryptographicVerifier()
        self.display = display or StoreDisplayProvider(self.store)

        self.transactions = TransactionManager(self.store, self.emitter)
        self.capabilities = CapabilityRegistry(self.store)
        self.version_gate = VersionGate(
            self.store, self.capabilities, self.emitter, compiled_version
        )
        self.collections = CollectionManager(
            self.store, self.capabilities, self.version_gate, self.display, self.emitter
        )
        self.ledger = Ledger(self.store)
        self.validator = create_default_validator(compiled_version, self.capabilities, self.verifier)
        self.engine = MintAuthorizationEngine(
            self.store, self.validator, PaymentRouter(self.ledger), self.emitter
        )

        self.version_id: Optional[str] = self._find_version_id()

    @classmethod
    def from_config(
        cls,
        config_file: Optional[str] = None,
        profile: Optional[str] = None,
        store: Optional[ObjectStore] = None,
        configure_logging: bool = False,
    ) -> 'IssuanceAuthority':
        """Build a fully wired authority from layered configuration."""
        manager = ConfigurationManager(config_file, profile)
        problems = manager.validate()
        if problems:
            raise ConfigurationError(f"Invalid configuration: {'; '.join(problems)}")

        if configure_logging:
            setup_logging(manager.get('logging.level', 'INFO'))

        sinks = [MemorySink()]
        jsonl_path = manager.get('events.jsonl_path')
        if jsonl_path:
            sinks.append(JSONLinesSink(jsonl_path))
        if manager.get('events.log_events'):
            sinks.append(LoggingSink())

        snapshot = manager.get('storage.snapshot_path')
        if store is None and snapshot and Path(snapshot).exists():
            store = ObjectStore.load(snapshot)

        return cls(
            store=store,
            events=EventEmitter(sinks),
            verifier=CryptographicVerifier(manager.get('crypto.hash', 'sha256')),
            compiled_version=manager.get('engine.version', 1),
            allow_faucet=manager.get('ledger.allow_faucet', True),
            authority_id=manager.get('engine.authority_id', 'capmint'),
        )

    def _find_version_id(self) -> Optional[str]:
        records = self.store.list_objects(VersionRecord)
        return records[0].id if records else None

    def _version(self, version_id: Optional[str] = None) -> VersionRecord:
        version_id = version_id or self.version_id
        if version_id is None:
            raise ObjectNotFoundError("Authority has not been initialized")
        return self.version_gate.get_record(version_id)

    # Administration

    def initialize(self, ctx: TxContext) -> Tuple[Capability, VersionRecord]:
        """Create the super-admin capability and the version record. Once only."""
        with self.transactions.atomic(ctx, "initialize"):
            if self.version_id is not None or self.store.list_objects(VersionRecord):
                raise AlreadyInitializedError("Authority already initialized")

            admin = self.capabilities.issue_super_admin(ctx)
            record = self.version_gate.create_record(ctx, admin.id)
            self.emitter.emit(
                EventType.INITIALIZED, ctx,
                authority_id=self.authority_id,
                admin_cap_id=admin.id,
                version_id=record.id,
                version=record.version,
            )

        self.version_id = record.id
        self.logger.info(f"Initialized authority {self.authority_id} at version {record.version}")
        return admin, record

    def migrate_version(self, ctx: TxContext, version_id: str, admin_cap_id: str,
                        new_version: int) -> VersionRecord:
        with self.transactions.atomic(ctx, "migrate_version"):
            return self.version_gate.migrate(ctx, version_id, admin_cap_id, new_version)

    def migrate_collection(self, ctx: TxContext, config_id: str,
                           admin_cap_id: str) -> CollectionConfiguration:
        with self.transactions.atomic(ctx, "migrate_collection"):
            return self.version_gate.migrate_collection(
                ctx, self._version().id, config_id, admin_cap_id
            )

    def create_collection_creation_authority(self, ctx: TxContext, admin_cap_id: str,
                                             target: str) -> Capability:
        """Issue a collection-creation capability to ``target``."""
        with self.transactions.atomic(ctx, "create_collection_creation_authority"):
            self.version_gate.check_record(self._version())
            cap = self.capabilities.issue_creation_capability(ctx, admin_cap_id, target)
            self.emitter.emit(
                EventType.CREATION_AUTHORITY_ISSUED, ctx,
                capability_id=cap.id,
                owner=target,
                issued_by=admin_cap_id,
            )
            return cap

    # Collections

    def create_collection(self, ctx: TxContext, creation_cap_id: str,
                          params: Union[CollectionParams, Dict[str, Any]]) -> CreatedCollection:
        if not isinstance(params, CollectionParams):
            params = CollectionParams(**params)
        with self.transactions.atomic(ctx, "create_collection"):
            return self.collections.create_collection(
                ctx, self._version(), creation_cap_id, params
            )

    def update_collection_configuration(self, ctx: TxContext, admin_cap_id: str,
                                        config_id: str, **changes) -> List[Event]:
        with self.transactions.atomic(ctx, "update_collection_configuration"):
            return self.collections.update_configuration(ctx, admin_cap_id, config_id, **changes)

    def deactivate_collection(self, ctx: TxContext, config_id: str,
                              caller_cap_id: str) -> CollectionConfiguration:
        with self.transactions.atomic(ctx, "deactivate_collection"):
            return self.collections.deactivate(ctx, config_id, caller_cap_id)

    def activate_collection(self, ctx: TxContext, config_id: str,
                            caller_cap_id: str) -> CollectionConfiguration:
        with self.transactions.atomic(ctx, "activate_collection"):
            return self.collections.activate(ctx, config_id, caller_cap_id)

    def update_signing_policy(self, ctx: TxContext, config_id: str, caller_cap_id: str,
                              required: bool, public_key: Optional[str] = None) -> CollectionConfiguration:
        with self.transactions.atomic(ctx, "update_signing_policy"):
            return self.collections.update_signing_policy(
                ctx, config_id, caller_cap_id, required, public_key
            )

    # Minting

    def mint(self, ctx: TxContext, config_id: str, collection_id: str,
             mint_cap_id: Optional[str], receiver: str, metadata, attributes=None,
             salt=None, signature=None) -> AssetRecord:
        with self.transactions.atomic(ctx, "mint"):
            return self.engine.mint(
                ctx, config_id, collection_id, mint_cap_id, receiver,
                metadata, attributes, salt, signature,
            )

    def mint_with_payment(self, ctx: TxContext, config_id: str, collection_id: str,
                          mint_cap_id: Optional[str], receiver: str, metadata, attributes,
                          payment_coin_id: str, salt=None, signature=None) -> AssetRecord:
        with self.transactions.atomic(ctx, "mint_with_payment"):
            return self.engine.mint_with_payment(
                ctx, config_id, collection_id, mint_cap_id, receiver,
                metadata, attributes, payment_coin_id, salt, signature,
            )

    # Ledger

    def fund(self, ctx: TxContext, owner: str, value: int) -> Coin:
        """Faucet: create a coin for ``owner``. Disabled in production."""
        if not self.allow_faucet:
            raise LedgerError("Faucet disabled by configuration")
        with self.transactions.atomic(ctx, "fund"):
            return self.ledger.fund(ctx, owner, value)

    def balance_of(self, address: str) -> int:
        with self.transactions.serialized():
            return self.ledger.balance_of(address)

    # Reads
    #
    # Reads take the transaction lock so they only ever see committed state.

    def get_configuration(self, config_id: str) -> CollectionConfiguration:
        with self.transactions.serialized():
            return self.collections.get_configuration(config_id)

    def get_collection(self, collection_id: str) -> CollectionRecord:
        with self.transactions.serialized():
            return self.collections.get_collection(collection_id)

    def get_asset(self, asset_id: str) -> AssetRecord:
        with self.transactions.serialized():
            return self.store.get(asset_id, AssetRecord)

    def get_version(self) -> VersionRecord:
        with self.transactions.serialized():
            return self._version()

    def events(self, event_type: Optional[EventType] = None) -> List[Event]:
        """Published events from the in-memory sink."""
        memory = self.emitter.memory
        if memory is None:
            return []
        if event_type is None:
            return list(memory.events)
        return memory.of_type(event_type)

    def save(self, path: Union[str, Path]) -> str:
        """Snapshot the object store between calls."""
        with self.transactions.serialized():
            return self.store.save(path)

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "objects": len(self.store),
            "transactions": self.transactions.get_metrics(),
            "mint": self.engine.get_statistics(),
            "events": dict(self.emitter.stats),
        }
