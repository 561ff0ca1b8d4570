"""
Unit Tests for the bulk create pipeline
"""
import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy import event
from sqlalchemy.exc import DataError

from laborhours.core.exceptions import DuplicateConflictError, ProvisioningError, ValidationError
from laborhours.core.security import LOWERCASE, UPPERCASE, DIGITS, SPECIAL_CHARACTERS
from laborhours.models import AppRole, User
from laborhours.services.bulk_user_service import BulkUserService
from laborhours.services.invitation_service import InvitationResult, InvitationService
from laborhours.services.user_store import UserStore
from laborhours.services.user_validator import BatchItem


@pytest.fixture
def invitations():
    service = AsyncMock(spec=InvitationService)
    service.send_invitation.side_effect = lambda user_id, email, password, full_name=None: \
        InvitationResult(user_id=user_id, email=email, sent=True)
    return service


class TestBulkCreate:

    async def test_same_email_twice_in_one_batch(self, db_session, process_tree):
        items = [
            BatchItem(email="a@x.com", categories=["1.1"]),
            BatchItem(email="a@x.com", categories=["1.1"]),
        ]

        result = await BulkUserService(db_session).bulk_create(items)

        assert [c["email"] for c in result["results"]["created"]] == ["a@x.com"]
        assert result["results"]["duplicates"] == [{"email": "a@x.com", "reason": "Email already exists"}]
        assert result["results"]["errors"] == []
        assert result["summary"] == {"total": 2, "created": 1, "duplicates": 1, "errors": 0}

    async def test_mixed_batch_counts(self, db_session, test_user):
        existing_email = test_user.email
        items = [
            BatchItem(email="new1@x.com", full_name="One", categories=["1.1", "2.1"]),
            BatchItem(email=existing_email.upper(), categories=["1.1"]),
            BatchItem(email="broken", categories=["1.1"]),
            BatchItem(email="nocat@x.com", categories=[]),
            BatchItem(email="badcat@x.com", categories=["1.1", "9.9"]),
            BatchItem(email="new2@x.com", categories=["1.2"]),
        ]

        result = await BulkUserService(db_session).bulk_create(items)
        results = result["results"]

        assert len(results["created"]) + len(results["duplicates"]) + len(results["errors"]) == len(items)
        assert {c["email"] for c in results["created"]} == {"new1@x.com", "new2@x.com"}
        assert results["duplicates"] == [{"email": existing_email.lower(), "reason": "Email already exists"}]
        errors = {e["email"]: e["error"] for e in results["errors"]}
        assert errors == {
            "broken": "Invalid email format",
            "nocat@x.com": "No processes specified",
            # 9.9 exists but is inactive
            "badcat@x.com": "Invalid processes: 9.9",
        }

    async def test_created_passwords_meet_rules(self, db_session, process_tree):
        items = [BatchItem(email=f"user{i}@x.com", categories=["1.1"]) for i in range(5)]

        result = await BulkUserService(db_session).bulk_create(items)

        for created in result["results"]["created"]:
            password = created["password"]
            assert len(password) == 8
            assert any(c in LOWERCASE for c in password)
            assert any(c in UPPERCASE for c in password)
            assert any(c in DIGITS for c in password)
            assert any(c in SPECIAL_CHARACTERS for c in password)

    async def test_provisioning_failure_does_not_stop_batch(self, db_session, process_tree):
        store_insert_role = UserStore.insert_role
        calls = {"n": 0}

        async def flaky_insert_role(self, user_id, role):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("deadlock detected")
            return await store_insert_role(self, user_id, role)

        items = [
            BatchItem(email="first@x.com", categories=["1.1"]),
            BatchItem(email="second@x.com", categories=["1.1"]),
        ]
        with patch.object(UserStore, "insert_role", flaky_insert_role):
            result = await BulkUserService(db_session).bulk_create(items)

        assert result["results"]["errors"] == [
            {"email": "first@x.com", "error": "Role assignment failed: deadlock detected"}
        ]
        assert [c["email"] for c in result["results"]["created"]] == ["second@x.com"]
        assert await UserStore(db_session).get_identity_by_email("first@x.com") is None

    async def test_identity_flush_error_does_not_poison_later_rows(self, db_session, process_tree):
        long_email = "a" * 250 + "@x.com"

        def reject_long_emails(session, flush_context, instances):
            for obj in session.new:
                if isinstance(obj, User) and len(obj.email) > 255:
                    raise DataError(
                        "INSERT INTO users", {},
                        Exception("value too long for type character varying(255)"),
                    )

        event.listen(db_session.sync_session, "before_flush", reject_long_emails)
        try:
            items = [
                BatchItem(email=long_email, categories=["1.1"]),
                BatchItem(email="ok1@x.com", categories=["1.1"]),
                BatchItem(email="ok2@x.com", categories=["1.2"]),
            ]
            result = await BulkUserService(db_session).bulk_create(items)
        finally:
            event.remove(db_session.sync_session, "before_flush", reject_long_emails)

        assert [e["email"] for e in result["results"]["errors"]] == [long_email]
        assert [c["email"] for c in result["results"]["created"]] == ["ok1@x.com", "ok2@x.com"]
        assert await UserStore(db_session).get_identity_by_email("ok2@x.com") is not None

    async def test_invitation_failure_keeps_user(self, db_session, process_tree, invitations):
        invitations.send_invitation.side_effect = lambda user_id, email, password, full_name=None: \
            InvitationResult(user_id=user_id, email=email, sent=False, error="SMTP is not configured")

        result = await BulkUserService(db_session, invitation_service=invitations).bulk_create(
            [BatchItem(email="inv@x.com", categories=["1.1"])], send_invitations=True
        )

        created = result["results"]["created"][0]
        assert created["invitation_sent"] is False
        assert created["invitation_error"] == "SMTP is not configured"
        assert await UserStore(db_session).get_identity_by_email("inv@x.com") is not None

    async def test_invitations_sent_with_generated_password(self, db_session, process_tree, invitations):
        result = await BulkUserService(db_session, invitation_service=invitations).bulk_create(
            [BatchItem(email="inv@x.com", full_name="Inv", categories=["1.1"])], send_invitations=True
        )

        created = result["results"]["created"][0]
        assert created["invitation_sent"] is True
        invitations.send_invitation.assert_awaited_once_with(
            created["user_id"], "inv@x.com", created["password"], "Inv"
        )

    async def test_no_invitations_by_default(self, db_session, process_tree, invitations):
        await BulkUserService(db_session, invitation_service=invitations).bulk_create(
            [BatchItem(email="quiet@x.com", categories=["1.1"])]
        )

        invitations.send_invitation.assert_not_awaited()

    async def test_empty_batch_rejected(self, db_session, process_tree):
        with pytest.raises(ValidationError):
            await BulkUserService(db_session).bulk_create([])

    async def test_oversized_batch_rejected(self, db_session, process_tree):
        with patch("laborhours.services.bulk_user_service.settings") as mock_settings:
            mock_settings.BULK_MAX_USERS = 1
            with pytest.raises(ValidationError):
                await BulkUserService(db_session).bulk_create([
                    BatchItem(email="a@x.com", categories=["1.1"]),
                    BatchItem(email="b@x.com", categories=["1.1"]),
                ])


class TestValidate:

    async def test_preview_writes_nothing(self, db_session, process_tree):
        result = await BulkUserService(db_session).validate([
            BatchItem(email="a@x.com", categories=["1.1"]),
            BatchItem(email="a@x.com", categories=["1.1"]),
        ])

        assert result["summary"] == {"total": 2, "valid": 1, "duplicates": 1, "errors": 0}
        assert await UserStore(db_session).existing_emails() == set()


class TestCreateUser:

    async def test_admin_gets_every_category(self, db_session, process_tree):
        result = await BulkUserService(db_session).create_user(
            email="boss@x.com", role=AppRole.ADMIN, processes=["1.1"]
        )

        assert result["processes"] == process_tree
        assert await UserStore(db_session).has_role(result["user_id"], AppRole.ADMIN)

    async def test_duplicate_email(self, db_session, test_user):
        with pytest.raises(DuplicateConflictError):
            await BulkUserService(db_session).create_user(email=test_user.email, processes=["1.1"])

    async def test_user_requires_categories(self, db_session, process_tree):
        with pytest.raises(ValidationError) as exc_info:
            await BulkUserService(db_session).create_user(email="u@x.com", processes=[])
        assert exc_info.value.message == "No processes specified"

    async def test_invalid_email(self, db_session, process_tree):
        with pytest.raises(ValidationError):
            await BulkUserService(db_session).create_user(email="nope", processes=["1.1"])

    async def test_step_failure_raises_provisioning_error(self, db_session, process_tree):
        with patch.object(UserStore, "insert_access", AsyncMock(side_effect=RuntimeError("fk"))):
            with pytest.raises(ProvisioningError) as exc_info:
                await BulkUserService(db_session).create_user(email="u@x.com", processes=["1.1"])

        assert exc_info.value.details["step"] == "access"
        assert await UserStore(db_session).get_identity_by_email("u@x.com") is None
