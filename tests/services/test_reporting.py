"""Tests for manager statistics and session export."""

import pytest

from review_tracker.models import SessionStatus, UserRole
from review_tracker.services.errors import AuthorizationError, NotFoundError, ValidationError
from review_tracker.services.reporting import export_sessions, manager_stats

from ..factories import ActionItemFactory, AnswerFactory, OneOnOneFactory, TeamFactory, UserFactory


def _session(team_setup, developer_key="developer", **kwargs):
    return OneOnOneFactory(
        developer=team_setup[developer_key],
        manager=team_setup["manager"],
        team=team_setup["team"],
        **kwargs,
    )


class TestManagerStats:

    def test_counts(self, db_session, team_setup):
        _session(team_setup, status=SessionStatus.SUBMITTED)
        _session(team_setup, "second_developer", status=SessionStatus.COMPLETED)

        stats = manager_stats(team_setup["manager"], "2026-10")

        assert stats == {
            "month_year": "2026-10",
            "total_members": 2,
            "submitted": 1,
            "reviewed": 0,
            "completed": 1,
            "draft": 0,
        }

    def test_draft_counts_developers_not_started(self, db_session, team_setup):
        stats = manager_stats(team_setup["manager"], "2026-10")
        assert stats["draft"] == 2

    def test_draft_is_never_negative(self, db_session, team_setup):
        _session(team_setup, status=SessionStatus.SUBMITTED, session_number=1)
        _session(team_setup, status=SessionStatus.COMPLETED, session_number=2)
        _session(team_setup, status=SessionStatus.REVIEWED, session_number=3)

        assert manager_stats(team_setup["manager"], "2026-10")["draft"] == 0

    def test_no_team(self, db_session, team_setup):
        assert manager_stats(team_setup["admin"], "2026-10") is None

    def test_developer_denied(self, db_session, team_setup):
        with pytest.raises(AuthorizationError):
            manager_stats(team_setup["developer"], "2026-10")


class TestExport:

    def test_range_and_eager_children(self, db_session, team_setup):
        september = _session(team_setup, month_year="2026-09")
        october = _session(team_setup, month_year="2026-10")
        _session(team_setup, month_year="2026-12")
        AnswerFactory(one_on_one=october)
        ActionItemFactory(one_on_one=october)

        sessions = export_sessions(team_setup["manager"], "2026-09", "2026-11")

        assert [s.id for s in sessions] == [september.id, october.id]
        assert len(sessions[1].answers) == 1
        assert len(sessions[1].action_items) == 1

    def test_manager_only_sees_own_teams(self, db_session, team_setup):
        _session(team_setup)
        other_manager = UserFactory(role=UserRole.MANAGER)
        other_team = TeamFactory(manager=other_manager)

        assert export_sessions(other_manager, "2026-01", "2026-12") == []
        with pytest.raises(NotFoundError):
            export_sessions(other_manager, "2026-01", "2026-12", team_id=team_setup["team"].id)
        assert export_sessions(other_manager, "2026-01", "2026-12", team_id=other_team.id) == []

    def test_admin_sees_everything(self, db_session, team_setup):
        _session(team_setup)
        OneOnOneFactory()

        assert len(export_sessions(team_setup["admin"], "2026-01", "2026-12")) == 2
        filtered = export_sessions(team_setup["admin"], "2026-01", "2026-12", team_id=team_setup["team"].id)
        assert len(filtered) == 1

    def test_inverted_range(self, db_session, team_setup):
        with pytest.raises(ValidationError):
            export_sessions(team_setup["admin"], "2026-12", "2026-01")

    def test_month_format(self, db_session, team_setup):
        with pytest.raises(ValidationError) as exc:
            export_sessions(team_setup["admin"], "October", "2026-12")
        assert exc.value.message == "start_month must be in YYYY-MM format"
