"""Tests for action item CRUD and the caller's pending list."""

from datetime import date

import pytest

from review_tracker.models import ActionItem, ActionStatus, Notification, NotificationType, ParticipantRole
from review_tracker.services.action_items import (
    create_action_item,
    delete_action_item,
    list_action_items,
    my_pending_action_items,
    parse_due_date,
    update_action_item,
)
from review_tracker.services.errors import AuthorizationError, NotFoundError, ValidationError

from ..factories import ActionItemFactory, OneOnOneFactory


@pytest.fixture
def session(team_setup):
    return OneOnOneFactory(
        developer=team_setup["developer"],
        manager=team_setup["manager"],
        team=team_setup["team"],
    )


class TestParseDueDate:

    def test_values(self):
        assert parse_due_date(None) is None
        assert parse_due_date("") is None
        assert parse_due_date("2026-11-01") == date(2026, 11, 1)
        assert parse_due_date(date(2026, 11, 1)) == date(2026, 11, 1)

    def test_bad_date(self):
        with pytest.raises(ValidationError):
            parse_due_date("next friday")


class TestCreate:

    def test_manager_assigns_developer(self, db_session, team_setup, session):
        item = create_action_item(
            team_setup["manager"], session.id, "  Write the design doc ", "developer", "2026-11-01"
        )

        assert item.description == "Write the design doc"
        assert item.status == ActionStatus.PENDING
        assert item.due_date == date(2026, 11, 1)

        notification = Notification.query.one()
        assert notification.user_id == team_setup["developer"].id
        assert notification.notification_type == NotificationType.ACTION_ITEM_ASSIGNED
        assert notification.related_id == item.id
        assert notification.related_type == "action_item"

    def test_self_assignment_does_not_notify(self, db_session, team_setup, session):
        create_action_item(team_setup["developer"], session.id, "Read the RFC", "developer")
        assert Notification.query.count() == 0

    def test_admin_is_not_a_participant(self, db_session, team_setup, session):
        with pytest.raises(AuthorizationError):
            create_action_item(team_setup["admin"], session.id, "Anything", "developer")
        assert ActionItem.query.count() == 0

    def test_validation(self, db_session, team_setup, session):
        with pytest.raises(ValidationError):
            create_action_item(team_setup["manager"], session.id, "   ", "developer")
        with pytest.raises(ValidationError):
            create_action_item(team_setup["manager"], session.id, "Task", "peer")

    def test_unknown_session(self, db_session, team_setup):
        with pytest.raises(NotFoundError):
            create_action_item(team_setup["manager"], "missing", "Task", "developer")


class TestUpdateAndDelete:

    def test_completion_sets_timestamp_once(self, db_session, team_setup, session):
        item = ActionItemFactory(one_on_one=session)

        update_action_item(team_setup["developer"], item.id, {"status": "completed"})
        first = item.completed_at
        update_action_item(team_setup["developer"], item.id, {"status": "completed"})

        assert first is not None
        assert item.completed_at == first

    def test_update_fields(self, db_session, team_setup, session):
        item = ActionItemFactory(one_on_one=session)

        updated = update_action_item(team_setup["manager"], item.id, {
            "description": "Pair on the migration",
            "status": "in_progress",
            "due_date": "2026-12-01",
        })

        assert updated.description == "Pair on the migration"
        assert updated.status == ActionStatus.IN_PROGRESS
        assert updated.due_date == date(2026, 12, 1)
        assert updated.completed_at is None

    def test_rejects_unknown_fields_and_status(self, db_session, team_setup, session):
        item = ActionItemFactory(one_on_one=session)
        with pytest.raises(ValidationError):
            update_action_item(team_setup["manager"], item.id, {"assigned_to": "manager"})
        with pytest.raises(ValidationError):
            update_action_item(team_setup["manager"], item.id, {"status": "blocked"})

    def test_outsider_cannot_update(self, db_session, team_setup, session):
        item = ActionItemFactory(one_on_one=session)
        with pytest.raises(AuthorizationError):
            update_action_item(team_setup["outsider"], item.id, {"status": "completed"})

    def test_delete(self, db_session, team_setup, session):
        item = ActionItemFactory(one_on_one=session)
        item_id = item.id

        delete_action_item(team_setup["developer"], item_id)

        assert db_session.get(ActionItem, item_id) is None
        with pytest.raises(NotFoundError):
            delete_action_item(team_setup["developer"], item_id)


class TestLists:

    def test_list_for_session(self, db_session, team_setup, session):
        ActionItemFactory(one_on_one=session)
        ActionItemFactory(one_on_one=session)

        assert len(list_action_items(team_setup["admin"], session.id)) == 2
        with pytest.raises(AuthorizationError):
            list_action_items(team_setup["outsider"], session.id)

    def test_pending_for_caller(self, db_session, team_setup, session):
        later = ActionItemFactory(one_on_one=session, due_date=date(2026, 12, 1))
        sooner = ActionItemFactory(one_on_one=session, due_date=date(2026, 11, 1))
        undated = ActionItemFactory(one_on_one=session)
        ActionItemFactory(one_on_one=session, status=ActionStatus.COMPLETED)
        mine_as_manager = ActionItemFactory(one_on_one=session, assigned_to=ParticipantRole.MANAGER)

        developer_items = my_pending_action_items(team_setup["developer"])
        manager_items = my_pending_action_items(team_setup["manager"])

        assert [i.id for i in developer_items] == [sooner.id, later.id, undated.id]
        assert [i.id for i in manager_items] == [mine_as_manager.id]
