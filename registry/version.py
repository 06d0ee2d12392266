"""
Version gate.

A monotonic logic version guards administrative mutation. The process-wide
VersionRecord may only move forward, and configurations created under an
older version must be migrated before current logic will operate on them.
"""

import logging

from .capabilities import CapabilityRegistry
from .events import EventEmitter, EventType
from .exceptions import NotAdminError, NotUpgradeError, WrongVersionError
from .schema import CapabilityKind, CollectionConfiguration, VersionRecord, utc_now
from .storage import ObjectStore


logger = logging.getLogger(__name__)


def check_version(actual: int, expected: int, what: str = "object") -> None:
    if actual != expected:
        raise WrongVersionError(f"{what} is at version {actual}, logic expects {expected}")


class VersionGate:
    """Owns the VersionRecord and the migration ratchet."""

    def __init__(
        self,
        store: ObjectStore,
        capabilities: CapabilityRegistry,
        events: EventEmitter,
        compiled_version: int = 1,
    ):
        self.store = store
        self.capabilities = capabilities
        self.events = events
        self.compiled_version = compiled_version

    def create_record(self, ctx, admin_id: str) -> VersionRecord:
        record = VersionRecord(id=ctx.fresh_id(), version=self.compiled_version, admin_id=admin_id)
        self.store.add(record, ctx.sender)
        self.store.share(record.id)
        return record

    def get_record(self, version_id: str) -> VersionRecord:
        return self.store.get(version_id, VersionRecord)

    def check_record(self, record: VersionRecord) -> None:
        check_version(record.version, self.compiled_version, "version record")

    def check_config(self, config: CollectionConfiguration) -> None:
        check_version(config.version, self.compiled_version, f"configuration {config.id}")

    def _require_admin(self, ctx, admin_id: str, admin_cap_id: str) -> None:
        self.capabilities.require(ctx, admin_cap_id, CapabilityKind.SUPER_ADMIN, NotAdminError)
        if admin_cap_id != admin_id:
            raise NotAdminError(f"Capability {admin_cap_id} is not the registered administrator")

    def migrate(self, ctx, version_id: str, admin_cap_id: str, new_version: int) -> VersionRecord:
        """Advance the VersionRecord. There is no downgrade path."""
        record = self.get_record(version_id)
        self._require_admin(ctx, record.admin_id, admin_cap_id)

        if new_version <= record.version:
            raise NotUpgradeError(
                f"New version {new_version} is not above current version {record.version}"
            )

        updated = record.model_copy(update={'version': new_version, 'updated_at': utc_now()})
        self.store.update(updated)
        self.events.emit(
            EventType.VERSION_MIGRATED, ctx,
            version_id=record.id, old_version=record.version, new_version=new_version,
        )
        logger.info(f"Version migrated {record.version} -> {new_version}")
        return updated

    def migrate_collection(
        self, ctx, version_id: str, config_id: str, admin_cap_id: str
    ) -> CollectionConfiguration:
        """Bring a configuration up to the VersionRecord's version."""
        record = self.get_record(version_id)
        config = self.store.get(config_id, CollectionConfiguration)
        self._require_admin(ctx, config.update_authority, admin_cap_id)

        if config.version >= record.version:
            raise NotUpgradeError(
                f"Configuration {config.id} already at version {config.version}"
            )

        updated = config.model_copy(update={'version': record.version, 'updated_at': utc_now()})
        self.store.update(updated)
        self.events.emit(
            EventType.COLLECTION_MIGRATED, ctx,
            config_id=config.id, collection_id=config.collection_id,
            old_version=config.version, new_version=record.version,
        )
        return updated
