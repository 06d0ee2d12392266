"""
Unit tests for the capability registry.
"""

import pytest

from registry.exceptions import NotAdminError, UnauthorizedError
from registry.schema import CapabilityKind, VersionRecord


class TestCapabilityRegistry:

    @pytest.fixture
    def admin(self, capabilities, ctx):
        return capabilities.issue_super_admin(ctx("0xadmin"))

    def test_super_admin_owned_by_sender(self, capabilities, store, admin):
        assert admin.kind == CapabilityKind.SUPER_ADMIN
        assert store.is_owned_by(admin.id, "0xadmin")

    def test_issue_creation_capability(self, capabilities, store, ctx, admin):
        cap = capabilities.issue_creation_capability(ctx("0xadmin"), admin.id, "0xcreator")
        assert cap.kind == CapabilityKind.COLLECTION_CREATION
        assert cap.issued_by == admin.id
        assert store.is_owned_by(cap.id, "0xcreator")
        assert capabilities.held_by("0xcreator", CapabilityKind.COLLECTION_CREATION) == [cap]

    def test_creation_requires_holding_admin(self, capabilities, ctx, admin):
        with pytest.raises(UnauthorizedError):
            capabilities.issue_creation_capability(ctx("0xstranger"), admin.id, "0xstranger")

    def test_creation_requires_admin_kind(self, capabilities, ctx, admin):
        creation = capabilities.issue_creation_capability(ctx("0xadmin"), admin.id, "0xadmin")
        with pytest.raises(UnauthorizedError):
            capabilities.issue_creation_capability(ctx("0xadmin"), creation.id, "0xother")

    def test_unknown_or_non_capability_id(self, capabilities, store, ctx):
        store.add(VersionRecord(id="v", version=1, admin_id="x"), "0xadmin")
        with pytest.raises(UnauthorizedError):
            capabilities.require(ctx("0xadmin"), "missing", CapabilityKind.SUPER_ADMIN)
        with pytest.raises(UnauthorizedError):
            capabilities.require(ctx("0xadmin"), "v", CapabilityKind.SUPER_ADMIN)
        with pytest.raises(UnauthorizedError):
            capabilities.require(ctx("0xadmin"), None, CapabilityKind.SUPER_ADMIN)

    def test_issue_mint_capability(self, capabilities, store, ctx, admin):
        creation = capabilities.issue_creation_capability(ctx("0xadmin"), admin.id, "0xcreator")
        mint_cap = capabilities.issue_mint_capability(
            ctx("0xcreator"), creation.id, "collection-1", 50, "0xminter"
        )
        assert mint_cap.kind == CapabilityKind.COLLECTION_MINT
        assert mint_cap.target_id == "collection-1"
        assert mint_cap.max_supply == 50
        assert store.is_owned_by(mint_cap.id, "0xminter")

    def test_mint_capability_requires_creation_kind(self, capabilities, ctx, admin):
        with pytest.raises(UnauthorizedError):
            capabilities.issue_mint_capability(ctx("0xadmin"), admin.id, "c", None, "0xadmin")

    def test_custom_error_class(self, capabilities, ctx, admin):
        with pytest.raises(NotAdminError):
            capabilities.require(ctx("0xstranger"), admin.id, CapabilityKind.SUPER_ADMIN, NotAdminError)

    def test_transferred_capability_follows_owner(self, capabilities, store, ctx, admin):
        store.transfer(admin.id, "0xnewadmin")
        capabilities.require(ctx("0xnewadmin"), admin.id, CapabilityKind.SUPER_ADMIN)
        with pytest.raises(UnauthorizedError):
            capabilities.require(ctx("0xadmin"), admin.id, CapabilityKind.SUPER_ADMIN)
