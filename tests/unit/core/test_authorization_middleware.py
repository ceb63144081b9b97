"""
Tests for role-based authorization and tenant scoping.

Tests:
- Role to permission mapping
- require_permission and require_admin dependencies
- Tenant filter clauses
"""

import uuid
from unittest.mock import Mock

import pytest
from sqlalchemy import true

from core.exceptions import AdminError
from core.middleware.authorization import (
    ROLE_PERMISSIONS,
    AuthorizationError,
    InsufficientPermissions,
    Permission,
    check_data_ownership,
    get_role_permissions,
    has_permission,
    owns,
    require_admin,
    require_permission,
    tenant_filter,
)
from database.models.candidates import Candidate
from database.models.profiles import ProfileRole
from tests.factories import make_profile


def _request(user=None, path="/api/v1/jobs"):
    request = Mock()
    request.scope = {"user": user} if user is not None else {}
    request.url = Mock(path=path)
    return request


class TestRolePermissions:
    """Test role permission mappings."""

    def test_admin_has_all_permissions(self):
        assert ROLE_PERMISSIONS[ProfileRole.ADMIN] == set(Permission)

    def test_customer_manages_own_pipeline(self):
        for permission in (
            Permission.CANDIDATES_READ,
            Permission.CANDIDATES_WRITE,
            Permission.CANDIDATES_DELETE,
            Permission.JOBS_READ,
            Permission.JOBS_WRITE,
            Permission.JOBS_DELETE,
            Permission.INTERVIEWS_READ,
            Permission.INTERVIEWS_WRITE,
        ):
            assert has_permission(ProfileRole.CUSTOMER, permission)

    def test_customer_cannot_administer(self):
        for permission in (
            Permission.INTERVIEWS_DELETE,
            Permission.ADMIN_READ,
            Permission.ADMIN_WRITE,
            Permission.USERS_MANAGE,
        ):
            assert not has_permission(ProfileRole.CUSTOMER, permission)

    def test_role_as_string(self):
        assert has_permission("customer", Permission.JOBS_READ)

    def test_unknown_role(self):
        assert has_permission("viewer", Permission.JOBS_READ) is False
        assert get_role_permissions("viewer") == []

    def test_permissions_in_declaration_order(self):
        permissions = get_role_permissions(ProfileRole.CUSTOMER)

        assert permissions[0] == Permission.CANDIDATES_READ
        assert permissions == sorted(permissions, key=list(Permission).index)


class TestRequirePermission:
    """Test the require_permission dependency."""

    @pytest.mark.asyncio
    async def test_allowed(self):
        user = make_profile(ProfileRole.CUSTOMER)
        dependency = require_permission(Permission.CANDIDATES_WRITE)

        assert await dependency(_request(user)) is user

    @pytest.mark.asyncio
    async def test_denied(self):
        dependency = require_permission(Permission.INTERVIEWS_DELETE)

        with pytest.raises(InsufficientPermissions) as exc_info:
            await dependency(_request(make_profile(ProfileRole.CUSTOMER)))

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Missing permission: interviews:delete"

    @pytest.mark.asyncio
    async def test_all_permissions_required(self):
        dependency = require_permission(Permission.JOBS_READ, Permission.USERS_MANAGE)

        with pytest.raises(InsufficientPermissions):
            await dependency(_request(make_profile(ProfileRole.CUSTOMER)))

    @pytest.mark.asyncio
    async def test_unauthenticated(self):
        dependency = require_permission(Permission.JOBS_READ)

        with pytest.raises(AuthorizationError) as exc_info:
            await dependency(_request())

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "User not authenticated."

    @pytest.mark.asyncio
    async def test_admin_passes_everything(self):
        admin = make_profile(ProfileRole.ADMIN)
        dependency = require_permission(*Permission)

        assert await dependency(_request(admin)) is admin


class TestRequireAdmin:
    """Admin dependency failures use the flat admin body."""

    @pytest.mark.asyncio
    async def test_admin_allowed(self):
        admin = make_profile(ProfileRole.ADMIN)
        assert await require_admin(_request(admin)) is admin

    @pytest.mark.asyncio
    async def test_customer_forbidden(self):
        with pytest.raises(AdminError) as exc_info:
            await require_admin(_request(make_profile(ProfileRole.CUSTOMER)))

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Forbidden: Admins only"
        assert exc_info.value.envelope is False

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self):
        with pytest.raises(AdminError) as exc_info:
            await require_admin(_request())

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Unauthorized: No session found"


class TestTenantScoping:
    """Test multi-tenant isolation helpers."""

    def test_customer_filter_compares_customer_id(self):
        customer = make_profile(ProfileRole.CUSTOMER)

        clause = tenant_filter(Candidate, customer)

        assert clause.left.key == "customer_id"
        assert clause.right.value == customer.id

    def test_admin_filter_is_always_true(self):
        clause = tenant_filter(Candidate, make_profile(ProfileRole.ADMIN))
        assert clause.compare(true())

    def test_ownership(self):
        user_id = uuid.uuid4()

        assert check_data_ownership(user_id, str(user_id)) is True
        assert check_data_ownership(user_id, uuid.uuid4()) is False
        assert check_data_ownership(user_id, uuid.uuid4(), is_admin=True) is True

    def test_owns(self):
        customer = make_profile(ProfileRole.CUSTOMER)
        admin = make_profile(ProfileRole.ADMIN)
        other_tenant = uuid.uuid4()

        assert owns(customer, customer.id) is True
        assert owns(customer, other_tenant) is False
        assert owns(admin, other_tenant) is True
