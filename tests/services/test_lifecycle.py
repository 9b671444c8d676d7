"""Tests for the session lifecycle transition table and status updates."""

from unittest.mock import patch

import pytest

from review_tracker.models import (
    MetricsRunStatus,
    MetricsSnapshot,
    Notification,
    NotificationType,
    ParticipantRole,
    SessionStatus,
)
from review_tracker.services.errors import AuthorizationError, ValidationError
from review_tracker.services.lifecycle import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    allowed_targets,
    role_may_ever_set,
    update_status,
    validate_transition,
)

from ..factories import AnswerFactory, OneOnOneFactory, QuestionFactory


class TestTransitionTable:
    """The table itself, no database."""

    def test_draft_is_never_a_target(self):
        for targets in VALID_TRANSITIONS.values():
            assert SessionStatus.DRAFT not in targets

    def test_completed_is_terminal(self):
        assert not any(state == SessionStatus.COMPLETED for state, _ in VALID_TRANSITIONS)

    def test_developer_may_only_submit_from_draft(self):
        assert allowed_targets(SessionStatus.DRAFT, ["developer"]) == {SessionStatus.SUBMITTED}
        assert allowed_targets(SessionStatus.SUBMITTED, ["developer"]) == set()

    def test_manager_may_complete_without_review(self):
        assert SessionStatus.COMPLETED in allowed_targets(SessionStatus.SUBMITTED, ["manager"])

    def test_roles_are_unioned(self):
        targets = allowed_targets(SessionStatus.DRAFT, ["developer", "admin"])
        assert targets == {SessionStatus.SUBMITTED}

    def test_role_may_ever_set(self):
        assert role_may_ever_set(SessionStatus.SUBMITTED, ["developer"])
        assert not role_may_ever_set(SessionStatus.COMPLETED, ["developer"])
        assert not role_may_ever_set(SessionStatus.SUBMITTED, ["manager", "admin"])


class TestValidateTransition:

    def test_valid_transition(self):
        result = validate_transition(SessionStatus.SUBMITTED, SessionStatus.REVIEWED, {"manager"})
        assert result.valid is True
        assert result.reason == "submitted -> reviewed"
        assert result.roles == ("manager",)

    def test_completed_session_reports_already_completed(self):
        result = validate_transition(SessionStatus.COMPLETED, SessionStatus.REVIEWED, {"manager"})
        assert result.valid is False
        assert result.reason == "1-on-1 is already completed"

    def test_back_to_draft_is_rejected(self):
        result = validate_transition(SessionStatus.SUBMITTED, SessionStatus.DRAFT, {"admin"})
        assert result.valid is False
        assert "draft" in result.reason

    def test_manager_cannot_complete_a_draft(self):
        result = validate_transition(SessionStatus.DRAFT, SessionStatus.COMPLETED, {"manager"})
        assert result.valid is False
        assert result.reason == "Cannot move a 1-on-1 from draft to completed"


class TestUpdateStatus:

    @pytest.fixture
    def session(self, team_setup):
        return OneOnOneFactory(
            developer=team_setup["developer"],
            manager=team_setup["manager"],
            team=team_setup["team"],
        )

    def test_developer_submits_draft(self, db_session, team_setup, session):
        result = update_status(session.id, "submitted", team_setup["developer"])

        assert result.session.status == SessionStatus.SUBMITTED
        assert result.session.developer_submitted_at is not None
        assert result.transition.from_state == SessionStatus.DRAFT
        assert result.metrics_run is None
        assert len(result.notification_ids) == 1

        notification = db_session.get(Notification, result.notification_ids[0])
        assert notification.user_id == team_setup["manager"].id
        assert notification.notification_type == NotificationType.ONE_ON_ONE_SUBMITTED
        assert notification.related_id == session.id

    def test_developer_cannot_complete(self, db_session, team_setup, session):
        with pytest.raises(AuthorizationError):
            update_status(session.id, "completed", team_setup["developer"])

        db_session.refresh(session)
        assert session.status == SessionStatus.DRAFT
        assert session.completed_at is None

    def test_manager_cannot_submit(self, db_session, team_setup, session):
        with pytest.raises(AuthorizationError) as exc:
            update_status(session.id, SessionStatus.SUBMITTED, team_setup["manager"])

        assert exc.value.message == "Only the developer can submit a 1-on-1"
        db_session.refresh(session)
        assert session.status == SessionStatus.DRAFT

    def test_manager_cannot_complete_a_draft(self, db_session, team_setup, session):
        with pytest.raises(InvalidTransitionError) as exc:
            update_status(session.id, "completed", team_setup["manager"])

        assert exc.value.status_code == 409
        db_session.refresh(session)
        assert session.status == SessionStatus.DRAFT

    def test_outsider_is_denied(self, db_session, team_setup, session):
        with pytest.raises(AuthorizationError):
            update_status(session.id, "submitted", team_setup["outsider"])
        assert Notification.query.count() == 0

    def test_unknown_status_is_rejected(self, team_setup, session):
        with pytest.raises(ValidationError):
            update_status(session.id, "archived", team_setup["developer"])

    def test_review_timestamp_is_set_once(self, db_session, team_setup, session):
        session.status = SessionStatus.SUBMITTED
        db_session.commit()

        update_status(session.id, "reviewed", team_setup["manager"])
        first = db_session.get(type(session), session.id).manager_reviewed_at

        update_status(session.id, "reviewed", team_setup["manager"])
        second = db_session.get(type(session), session.id).manager_reviewed_at

        assert first is not None
        assert first == second

    def test_resaving_a_review_notifies_once(self, db_session, team_setup, session):
        session.status = SessionStatus.SUBMITTED
        db_session.commit()

        first = update_status(session.id, "reviewed", team_setup["manager"])
        second = update_status(session.id, "reviewed", team_setup["manager"])

        assert len(first.notification_ids) == 1
        assert second.notification_ids == []
        assert Notification.query.filter_by(
            notification_type=NotificationType.ONE_ON_ONE_REVIEWED
        ).count() == 1

    def test_completed_is_terminal(self, db_session, team_setup, session):
        session.status = SessionStatus.COMPLETED
        db_session.commit()

        with pytest.raises(InvalidTransitionError):
            update_status(session.id, "reviewed", team_setup["manager"])

    def test_admin_may_complete_any_session(self, db_session, team_setup, session):
        session.status = SessionStatus.SUBMITTED
        db_session.commit()

        result = update_status(session.id, "completed", team_setup["admin"])

        assert result.session.status == SessionStatus.COMPLETED
        notification = db_session.get(Notification, result.notification_ids[0])
        assert notification.user_id == team_setup["developer"].id
        assert notification.notification_type == NotificationType.ONE_ON_ONE_COMPLETED

    def test_completion_runs_metrics(self, db_session, team_setup, session):
        session.status = SessionStatus.REVIEWED
        db_session.commit()
        question = QuestionFactory()
        AnswerFactory(one_on_one=session, question=question, answer_type=ParticipantRole.DEVELOPER, rating_value=4)
        AnswerFactory(one_on_one=session, question=question, answer_type=ParticipantRole.MANAGER, rating_value=3)

        result = update_status(session.id, "completed", team_setup["manager"])

        assert result.metrics_run.status == MetricsRunStatus.SUCCEEDED
        assert result.metrics_run.attempts == 1
        snapshot = MetricsSnapshot.query.filter_by(one_on_one_id=session.id).one()
        assert snapshot.average_score == pytest.approx(3.5)
        assert snapshot.metric_data["rating_alignment"] == pytest.approx(1.0)

    def test_metrics_failure_does_not_undo_completion(self, db_session, team_setup, session):
        session.status = SessionStatus.SUBMITTED
        db_session.commit()

        with patch(
            "review_tracker.services.metrics.calculate_and_save_metrics",
            side_effect=RuntimeError("boom"),
        ):
            result = update_status(session.id, "completed", team_setup["manager"])

        db_session.refresh(session)
        assert session.status == SessionStatus.COMPLETED
        assert result.metrics_run.status == MetricsRunStatus.FAILED
        assert "boom" in result.metrics_run.last_error
