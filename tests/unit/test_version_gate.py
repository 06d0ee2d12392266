"""
Unit tests for the version gate.
"""

import pytest

from registry.events import EventType
from registry.exceptions import NotAdminError, NotUpgradeError, WrongVersionError
from registry.version import check_version


class TestCheckVersion:

    def test_match(self):
        check_version(1, 1)

    def test_mismatch(self):
        with pytest.raises(WrongVersionError):
            check_version(2, 1)
        with pytest.raises(WrongVersionError):
            check_version(1, 2)


class TestMigrateVersion:

    def test_migrate_forward(self, initialized, ctx):
        authority, admin_cap, version = initialized
        updated = authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, 2)

        assert updated.version == 2
        assert authority.get_version().version == 2
        events = authority.events(EventType.VERSION_MIGRATED)
        assert events[-1].payload["old_version"] == 1
        assert events[-1].payload["new_version"] == 2

    @pytest.mark.parametrize("new_version", [0, 1])
    def test_not_upgrade(self, initialized, ctx, new_version):
        authority, admin_cap, version = initialized
        with pytest.raises(NotUpgradeError):
            authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, new_version)
        assert authority.get_version().version == 1

    def test_downgrade_after_upgrade(self, initialized, ctx):
        authority, admin_cap, version = initialized
        authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, 3)
        with pytest.raises(NotUpgradeError):
            authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, 2)
        with pytest.raises(NotUpgradeError):
            authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, 3)

    def test_not_admin_checked_before_upgrade(self, initialized, ctx):
        authority, admin_cap, version = initialized
        with pytest.raises(NotAdminError):
            authority.migrate_version(ctx("0xstranger"), version.id, admin_cap.id, 0)

    def test_other_capability_is_not_admin(self, initialized, creator_cap, ctx):
        authority, _, version = initialized
        with pytest.raises(NotAdminError):
            authority.migrate_version(ctx("0xcreator"), version.id, creator_cap.id, 2)

    def test_admin_operations_blocked_after_migration(self, initialized, ctx):
        authority, admin_cap, version = initialized
        authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, 2)
        with pytest.raises(WrongVersionError):
            authority.create_collection_creation_authority(ctx("0xadmin"), admin_cap.id, "0xcreator")


class TestMigrateCollection:

    def test_stale_configuration_rejected_then_migrated(self, initialized, make_collection, ctx):
        authority, admin_cap, version = initialized
        created = make_collection()
        config_id = created.configuration.id

        authority.migrate_version(ctx("0xadmin"), version.id, admin_cap.id, 2)
        authority.version_gate.compiled_version = 2
        authority.validator.get_rule("version").compiled_version = 2

        with pytest.raises(WrongVersionError):
            authority.activate_collection(ctx("0xadmin"), config_id, admin_cap.id)

        migrated = authority.migrate_collection(ctx("0xadmin"), config_id, admin_cap.id)
        assert migrated.version == 2
        authority.activate_collection(ctx("0xadmin"), config_id, admin_cap.id)
        assert authority.events(EventType.COLLECTION_MIGRATED)[-1].payload["new_version"] == 2

    def test_already_current(self, initialized, make_collection, ctx):
        authority, admin_cap, _ = initialized
        created = make_collection()
        with pytest.raises(NotUpgradeError):
            authority.migrate_collection(ctx("0xadmin"), created.configuration.id, admin_cap.id)

    def test_requires_admin(self, initialized, make_collection, ctx):
        authority, admin_cap, _ = initialized
        created = make_collection()
        with pytest.raises(NotAdminError):
            authority.migrate_collection(ctx("0xcreator"), created.configuration.id, admin_cap.id)
