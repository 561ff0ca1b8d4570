"""
Unit Tests for the questionnaire service
"""
import pytest

from laborhours.core.exceptions import (
    AuthorizationError,
    ProcessNotFoundError,
    ResponsesLockedError,
    ValidationError,
)
from laborhours.services.questionnaire_service import QuestionnaireService
from laborhours.services.user_store import UserStore


class TestTree:

    async def test_tree_limited_to_access(self, db_session, test_user):
        tree = await QuestionnaireService(db_session).get_tree(str(test_user.id))

        # test_user has 1.1 and 1.2; 1.2 has no children
        assert [node["f1_index"] for node in tree] == ["1.1", "1.2"]
        leaves = tree[0]["children"][0]["children"][0]["children"]
        # Ordered by sort, inactive leaf hidden
        assert [leaf["f4_index"] for leaf in leaves] == ["1.1.1.1.1", "1.1.1.1.2"]

    async def test_no_access_no_tree(self, db_session, user_factory, process_tree):
        user = await user_factory(categories=["2.1"])
        user_id = str(user.id)
        await UserStore(db_session).replace_access(user_id, [])

        assert await QuestionnaireService(db_session).get_tree(user_id) == []

    async def test_systems(self, db_session, process_tree):
        systems = await QuestionnaireService(db_session).get_systems()

        assert [s["system_name"] for s in systems] == ["Microsoft Excel", "SAP ERP"]


class TestResponses:

    async def test_save_and_update(self, db_session, test_user):
        user_id = str(test_user.id)
        service = QuestionnaireService(db_session)

        await service.save_response(user_id, "1.1.1.1.1", labor_hours=4)
        saved = await service.save_response(user_id, "1.1.1.1.1", labor_hours=6.5, notes="monthly")

        assert saved["labor_hours"] == 6.5
        responses = await service.get_responses(user_id)
        assert len(responses) == 1
        assert responses[0]["notes"] == "monthly"

    async def test_unknown_process(self, db_session, test_user):
        with pytest.raises(ProcessNotFoundError):
            await QuestionnaireService(db_session).save_response(str(test_user.id), "0.0.0.0.0", labor_hours=1)

    async def test_inactive_process(self, db_session, test_user):
        with pytest.raises(ProcessNotFoundError):
            await QuestionnaireService(db_session).save_response(str(test_user.id), "1.1.1.1.3", labor_hours=1)

    async def test_process_outside_access(self, db_session, test_user):
        with pytest.raises(AuthorizationError):
            await QuestionnaireService(db_session).save_response(str(test_user.id), "2.1.1.1.1", labor_hours=1)

    async def test_negative_hours(self, db_session, test_user):
        with pytest.raises(ValidationError):
            await QuestionnaireService(db_session).save_response(str(test_user.id), "1.1.1.1.1", labor_hours=-1)

    async def test_unknown_system(self, db_session, test_user):
        with pytest.raises(ValidationError):
            await QuestionnaireService(db_session).save_response(
                str(test_user.id), "1.1.1.1.1", system_id=999, labor_hours=1
            )


class TestSubmit:

    async def test_zero_hours_rejected(self, db_session, test_user):
        user_id = str(test_user.id)
        service = QuestionnaireService(db_session)
        await service.save_response(user_id, "1.1.1.1.1", labor_hours=0)

        with pytest.raises(ValidationError):
            await service.submit(user_id)

    async def test_submit_locks_responses(self, db_session, test_user):
        user_id = str(test_user.id)
        service = QuestionnaireService(db_session)
        await service.save_response(user_id, "1.1.1.1.1", labor_hours=3)
        await service.save_response(user_id, "1.1.1.1.2", labor_hours=2)

        result = await service.submit(user_id)

        assert result["submitted"] == 2
        assert result["total_hours"] == 5
        assert all(r["is_submitted"] for r in await service.get_responses(user_id))
        profile = await UserStore(db_session).get_profile(user_id)
        await db_session.refresh(profile)
        assert profile.questionnaire_completed is True

        with pytest.raises(ResponsesLockedError):
            await service.save_response(user_id, "1.1.1.1.1", labor_hours=10)
        with pytest.raises(ResponsesLockedError):
            await service.submit(user_id)
