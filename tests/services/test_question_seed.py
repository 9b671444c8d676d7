"""Tests for seeding the question catalogue from YAML."""

import pytest

from review_tracker.models import Question, QuestionScope, QuestionType
from review_tracker.services.errors import NotFoundError, ValidationError
from review_tracker.services.question_seed import DEFAULT_SEED_PATH, load_seed_file, seed_questions

from ..factories import TeamFactory


def _write(tmp_path, text):
    path = tmp_path / "questions.yaml"
    path.write_text(text)
    return path


class TestLoadSeedFile:

    def test_bundled_file(self):
        entries = load_seed_file(DEFAULT_SEED_PATH)
        assert len(entries) >= 1
        assert all("question_text" in entry for entry in entries)

    def test_missing_file(self, tmp_path):
        with pytest.raises(NotFoundError):
            load_seed_file(tmp_path / "nope.yaml")

    def test_requires_questions_list(self, tmp_path):
        with pytest.raises(ValidationError):
            load_seed_file(_write(tmp_path, "questions: not-a-list\n"))


class TestSeedQuestions:

    def test_bundled_seed_is_idempotent(self, db_session):
        first = seed_questions()
        second = seed_questions()

        assert first.created == len(load_seed_file())
        assert first.skipped == 0
        assert second.created == 0
        assert second.skipped == first.created
        assert Question.query.count() == first.created

    def test_team_scoped_question(self, db_session, tmp_path):
        team = TeamFactory()
        path = _write(tmp_path, f"""
questions:
  - question_text: Did the on-call rotation work for you?
    question_type: yes_no
    scope: team
    team_id: {team.id}
    sort_order: 7
""")
        assert seed_questions(path).created == 1

        question = Question.query.one()
        assert question.scope == QuestionScope.TEAM
        assert question.team_id == team.id
        assert question.question_type == QuestionType.YES_NO
        assert question.sort_order == 7

    def test_invalid_entry_writes_nothing(self, db_session, tmp_path):
        path = _write(tmp_path, """
questions:
  - question_text: Fine question?
    question_type: text
  - question_text: Broken question?
    question_type: essay
""")
        with pytest.raises(ValidationError):
            seed_questions(path)
        assert Question.query.count() == 0

    def test_team_scope_needs_existing_team(self, db_session, tmp_path):
        path = _write(tmp_path, """
questions:
  - question_text: Team question?
    question_type: text
    scope: team
    team_id: missing
""")
        with pytest.raises(ValidationError):
            seed_questions(path)
