"""Tests for answer and note upserts and the active question set."""

import pytest

from review_tracker.models import Answer, Note, NoteType, ParticipantRole, QuestionScope, QuestionType
from review_tracker.services.answers import (
    active_questions,
    list_answers,
    questions_for_session,
    save_answer,
    save_answers_batch,
    save_note,
    validate_answer_value,
)
from review_tracker.services.errors import AuthorizationError, NotFoundError, ValidationError

from ..factories import OneOnOneFactory, QuestionFactory, TeamFactory


@pytest.fixture
def session(team_setup):
    return OneOnOneFactory(
        developer=team_setup["developer"],
        manager=team_setup["manager"],
        team=team_setup["team"],
    )


class TestValidateAnswerValue:

    def test_rating_bounds(self, db_session):
        question = QuestionFactory(question_type=QuestionType.RATING_1_5)
        assert validate_answer_value(question, 5, None) == (5, None)
        with pytest.raises(ValidationError):
            validate_answer_value(question, 6, None)
        with pytest.raises(ValidationError):
            validate_answer_value(question, 0, None)

    def test_ten_point_scale(self, db_session):
        question = QuestionFactory(question_type=QuestionType.RATING_1_10)
        assert validate_answer_value(question, 10, "great month") == (10, "great month")

    def test_rating_must_be_integer(self, db_session):
        question = QuestionFactory(question_type=QuestionType.RATING_1_5)
        with pytest.raises(ValidationError):
            validate_answer_value(question, True, None)
        with pytest.raises(ValidationError):
            validate_answer_value(question, "4", None)

    def test_text_question_rejects_rating(self, db_session):
        question = QuestionFactory(question_type=QuestionType.TEXT)
        with pytest.raises(ValidationError):
            validate_answer_value(question, 3, None)

    def test_yes_no_is_normalised(self, db_session):
        question = QuestionFactory(question_type=QuestionType.YES_NO)
        assert validate_answer_value(question, None, " YES ") == (None, "yes")
        with pytest.raises(ValidationError):
            validate_answer_value(question, None, "maybe")


class TestSaveAnswer:

    def test_resave_updates_in_place(self, db_session, team_setup, session):
        question = QuestionFactory()
        first = save_answer(team_setup["developer"], session.id, question.id, "developer", rating_value=3)
        second = save_answer(team_setup["developer"], session.id, question.id, "developer", rating_value=5)

        assert first.id == second.id
        assert second.rating_value == 5
        assert Answer.query.filter_by(one_on_one_id=session.id).count() == 1

    def test_developer_and_manager_answers_are_separate(self, db_session, team_setup, session):
        question = QuestionFactory()
        save_answer(team_setup["developer"], session.id, question.id, "developer", rating_value=3)
        save_answer(team_setup["manager"], session.id, question.id, "manager", rating_value=4)
        assert Answer.query.filter_by(one_on_one_id=session.id).count() == 2

    def test_manager_cannot_write_developer_answers(self, db_session, team_setup, session):
        question = QuestionFactory()
        with pytest.raises(AuthorizationError):
            save_answer(team_setup["manager"], session.id, question.id, "developer", rating_value=3)
        assert Answer.query.count() == 0

    def test_admin_does_not_author_answers(self, db_session, team_setup, session):
        question = QuestionFactory()
        with pytest.raises(AuthorizationError):
            save_answer(team_setup["admin"], session.id, question.id, "manager", rating_value=3)

    def test_unknown_question(self, db_session, team_setup, session):
        with pytest.raises(NotFoundError):
            save_answer(team_setup["developer"], session.id, "missing", "developer", rating_value=3)

    def test_invalid_answer_type(self, db_session, team_setup, session):
        with pytest.raises(ValidationError):
            save_answer(team_setup["developer"], session.id, "q", "peer", rating_value=3)


class TestSaveAnswersBatch:

    def test_saves_and_skips_empty_entries(self, db_session, team_setup, session):
        rated = QuestionFactory()
        text = QuestionFactory(question_type=QuestionType.TEXT)
        skipped = QuestionFactory()

        saved = save_answers_batch(team_setup["developer"], session.id, "developer", [
            {"question_id": rated.id, "rating_value": 4},
            {"question_id": text.id, "text_value": "Shipped the importer"},
            {"question_id": skipped.id},
        ])

        assert saved == 2
        answers = {a.question_id: a for a in Answer.query.filter_by(one_on_one_id=session.id)}
        assert answers[rated.id].rating_value == 4
        assert answers[text.id].text_value == "Shipped the importer"
        assert skipped.id not in answers

    def test_batch_updates_existing_rows(self, db_session, team_setup, session):
        question = QuestionFactory()
        original = save_answer(team_setup["developer"], session.id, question.id, "developer", rating_value=2)

        save_answers_batch(team_setup["developer"], session.id, "developer", [
            {"question_id": question.id, "rating_value": 5},
        ])

        answer = Answer.query.filter_by(one_on_one_id=session.id).one()
        assert answer.id == original.id
        assert answer.rating_value == 5

    def test_invalid_entry_writes_nothing(self, db_session, team_setup, session):
        good = QuestionFactory()
        bad = QuestionFactory()
        with pytest.raises(ValidationError):
            save_answers_batch(team_setup["developer"], session.id, "developer", [
                {"question_id": good.id, "rating_value": 4},
                {"question_id": bad.id, "rating_value": 9},
            ])
        assert Answer.query.count() == 0

    def test_requires_answers_array(self, db_session, team_setup, session):
        with pytest.raises(ValidationError) as exc:
            save_answers_batch(team_setup["developer"], session.id, "developer", None)
        assert exc.value.message == "one_on_one_id, answer_type, and answers array are required"

    def test_list_answers_includes_both_sides(self, db_session, team_setup, session):
        question = QuestionFactory()
        save_answer(team_setup["developer"], session.id, question.id, "developer", rating_value=3)
        save_answer(team_setup["manager"], session.id, question.id, "manager", rating_value=4)

        answers = list_answers(team_setup["admin"], session.id)

        assert {a.answer_type for a in answers} == {ParticipantRole.DEVELOPER, ParticipantRole.MANAGER}
        with pytest.raises(AuthorizationError):
            list_answers(team_setup["outsider"], session.id)


class TestNotes:

    def test_note_upsert(self, db_session, team_setup, session):
        first = save_note(team_setup["developer"], session.id, "developer_notes", "Draft")
        second = save_note(team_setup["developer"], session.id, "developer_notes", "Final")

        assert first.id == second.id
        assert second.content == "Final"
        assert second.created_by == team_setup["developer"].id
        assert Note.query.filter_by(one_on_one_id=session.id).count() == 1

    def test_manager_feedback_is_manager_only(self, db_session, team_setup, session):
        with pytest.raises(AuthorizationError):
            save_note(team_setup["developer"], session.id, NoteType.MANAGER_FEEDBACK, "Great work")
        note = save_note(team_setup["manager"], session.id, NoteType.MANAGER_FEEDBACK, "Great work")
        assert note.note_type == NoteType.MANAGER_FEEDBACK

    def test_content_is_required(self, db_session, team_setup, session):
        with pytest.raises(ValidationError):
            save_note(team_setup["developer"], session.id, "developer_notes", None)


class TestQuestions:

    def test_company_and_own_team_questions(self, db_session, team_setup, session):
        company = QuestionFactory(sort_order=2)
        team_question = QuestionFactory(
            scope=QuestionScope.TEAM, team_id=team_setup["team"].id, sort_order=1
        )
        other_team = TeamFactory()
        QuestionFactory(scope=QuestionScope.TEAM, team_id=other_team.id)
        QuestionFactory(is_active=False)

        questions = questions_for_session(team_setup["developer"], session.id)

        assert [q.id for q in questions] == [team_question.id, company.id]

    def test_active_questions_without_team(self, db_session):
        company = QuestionFactory()
        QuestionFactory(scope=QuestionScope.TEAM, team_id=TeamFactory().id)
        assert [q.id for q in active_questions()] == [company.id]
