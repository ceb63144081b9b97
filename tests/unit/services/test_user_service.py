"""
Tests for admin user management.

The hosted auth admin client is always mocked; errors surface as AdminError.
"""

import uuid
from unittest.mock import AsyncMock, Mock

import pytest

from api.services import users as user_service
from core.exceptions import AdminError
from core.integrations.auth_admin import AuthAdminError
from database.models.audit import AuditLog
from database.models.profiles import Profile, ProfileRole
from tests.factories import added_of, make_profile, make_result, mock_session


@pytest.fixture
def admin():
    return make_profile(ProfileRole.ADMIN, "admin@example.com")


@pytest.fixture
def auth_admin():
    client = Mock()
    client.create_user = AsyncMock()
    client.delete_user = AsyncMock()
    return client


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_creates_auth_user_and_profile(self, admin, auth_admin):
        user_id = uuid.uuid4()
        auth_admin.create_user.return_value = {"id": str(user_id), "email": "hr@acme.com"}
        db = mock_session()

        user = await user_service.create_user(
            db, admin, "hr@acme.com", "Str0ng-Pass!", auth_admin=auth_admin
        )

        assert user["id"] == str(user_id)
        auth_admin.create_user.assert_awaited_once_with(
            "hr@acme.com", "Str0ng-Pass!", role="customer", email_confirm=True
        )
        profile = added_of(db, Profile)[0]
        assert profile.id == user_id
        assert profile.role == ProfileRole.CUSTOMER
        assert added_of(db, AuditLog)[0].details == {"email": "hr@acme.com", "role": "customer"}
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_existing_profile_updated(self, admin, auth_admin):
        existing = make_profile(ProfileRole.CUSTOMER, "old@acme.com")
        auth_admin.create_user.return_value = {"id": str(existing.id)}
        db = mock_session()
        db.get.return_value = existing

        await user_service.create_user(
            db, admin, "new@acme.com", "Str0ng-Pass!", role=ProfileRole.ADMIN, auth_admin=auth_admin
        )

        assert existing.email == "new@acme.com"
        assert existing.role == ProfileRole.ADMIN
        assert added_of(db, Profile) == []

    @pytest.mark.asyncio
    async def test_weak_password(self, admin, auth_admin):
        with pytest.raises(AdminError) as exc_info:
            await user_service.create_user(
                mock_session(), admin, "hr@acme.com", "password", auth_admin=auth_admin
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.message.startswith("Weak password: ")
        auth_admin.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_auth_service_rejects(self, admin, auth_admin):
        auth_admin.create_user.side_effect = AuthAdminError(
            "A user with this email address has already been registered", 422
        )
        db = mock_session()

        with pytest.raises(AdminError, match="already been registered"):
            await user_service.create_user(db, admin, "hr@acme.com", "Str0ng-Pass!", auth_admin=auth_admin)

        db.commit.assert_not_awaited()


class TestDeleteUser:
    @pytest.mark.asyncio
    async def test_delete(self, admin, auth_admin):
        target = make_profile()
        db = mock_session()
        db.get.return_value = target

        await user_service.delete_user(db, admin, target.id, auth_admin=auth_admin)

        auth_admin.delete_user.assert_awaited_once_with(target.id)
        db.delete.assert_awaited_once_with(target)
        assert added_of(db, AuditLog)[0].action == "DELETE"

    @pytest.mark.asyncio
    async def test_missing_profile_row(self, admin, auth_admin):
        db = mock_session()

        await user_service.delete_user(db, admin, uuid.uuid4(), auth_admin=auth_admin)

        db.delete.assert_not_awaited()
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_user_id_required(self, admin, auth_admin):
        with pytest.raises(AdminError, match="User ID is required"):
            await user_service.delete_user(mock_session(), admin, None, auth_admin=auth_admin)

    @pytest.mark.asyncio
    async def test_string_user_id_parsed(self, admin, auth_admin):
        target_id = uuid.uuid4()

        await user_service.delete_user(mock_session(), admin, str(target_id), auth_admin=auth_admin)

        auth_admin.delete_user.assert_awaited_once_with(target_id)

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, admin, auth_admin):
        with pytest.raises(AdminError, match="Invalid user ID: abc"):
            await user_service.delete_user(mock_session(), admin, "abc", auth_admin=auth_admin)

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, admin, auth_admin):
        with pytest.raises(AdminError, match="Cannot delete your own account"):
            await user_service.delete_user(mock_session(), admin, admin.id, auth_admin=auth_admin)

        auth_admin.delete_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_auth_failure(self, admin, auth_admin):
        auth_admin.delete_user.side_effect = AuthAdminError("User not found", 404)
        db = mock_session()

        with pytest.raises(AdminError, match="User not found"):
            await user_service.delete_user(db, admin, uuid.uuid4(), auth_admin=auth_admin)

        db.get.assert_not_awaited()


class TestUpdateRole:
    @pytest.mark.asyncio
    async def test_promote(self, admin):
        target = make_profile()
        db = mock_session()
        db.get.return_value = target

        result = await user_service.update_role(db, admin, target.id, ProfileRole.ADMIN)

        assert result.role == ProfileRole.ADMIN
        assert added_of(db, AuditLog)[0].details == {"from": "customer", "to": "admin"}

    @pytest.mark.asyncio
    async def test_unknown_user(self, admin):
        with pytest.raises(AdminError) as exc_info:
            await user_service.update_role(mock_session(), admin, uuid.uuid4(), ProfileRole.ADMIN)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_demote_self(self, admin):
        db = mock_session()
        db.get.return_value = admin

        with pytest.raises(AdminError, match="Cannot remove your own admin role"):
            await user_service.update_role(db, admin, admin.id, ProfileRole.CUSTOMER)


class TestListing:
    @pytest.mark.asyncio
    async def test_list_users_with_counts(self, admin):
        customer = make_profile(ProfileRole.CUSTOMER, "hr@acme.com", company_name="Acme")
        db = mock_session(
            make_result(scalars=[admin, customer]),
            make_result(scalar=0), make_result(scalar=0),
            make_result(scalar=3), make_result(scalar=12),
        )

        users = await user_service.list_users(db)

        assert [user["email"] for user in users] == ["admin@example.com", "hr@acme.com"]
        assert users[1]["company_name"] == "Acme"
        assert (users[1]["job_count"], users[1]["candidate_count"]) == (3, 12)

    @pytest.mark.asyncio
    async def test_platform_stats(self):
        db = mock_session(*[make_result(scalar=value) for value in (5, 4, 1, 7, 30, 9)])

        assert await user_service.get_platform_stats(db) == {
            "profiles": 5, "customers": 4, "admins": 1, "jobs": 7, "candidates": 30, "interviews": 9,
        }

    @pytest.mark.asyncio
    async def test_audit_logs(self):
        entries = [AuditLog(action="DELETE", resource="JOB")]
        db = mock_session(make_result(scalars=entries))

        assert await user_service.list_audit_logs(db, resource="JOB") == entries
        assert "audit_logs.resource = :resource_1" in str(db.execute.await_args.args[0])
