"""Answers, notes and the active question set.

Answer and note writes are single-statement upserts keyed on their unique
constraints, so two concurrent saves of the same (session, question,
answer type) update one row instead of racing to insert two.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..database import db, generate_id, upsert_statement
from ..models.answer import Answer, ParticipantRole
from ..models.note import Note, NoteType
from ..models.question import RATING_BOUNDS, Question, QuestionScope, QuestionType
from ..models.user import User
from .authorization import require_answer_author, require_note_author, require_session_access
from .errors import NotFoundError, ValidationError, storage_errors
from .one_on_ones import load_session

logger = logging.getLogger(__name__)

YES_NO_VALUES = ("yes", "no")


def parse_answer_type(value) -> ParticipantRole:
    if isinstance(value, ParticipantRole):
        return value
    try:
        return ParticipantRole(value)
    except ValueError:
        raise ValidationError("answer_type must be 'developer' or 'manager'")


def parse_note_type(value) -> NoteType:
    if isinstance(value, NoteType):
        return value
    try:
        return NoteType(value)
    except ValueError:
        raise ValidationError("note_type must be 'developer_notes' or 'manager_feedback'")


def validate_answer_value(question: Question, rating_value, text_value) -> tuple[int | None, str | None]:
    """Check an answer against its question type and normalise it.

    Returns:
        (rating_value, text_value) to store.
    """
    if question.question_type in RATING_BOUNDS:
        if rating_value is None:
            if text_value:
                raise ValidationError("Rating questions require rating_value")
            return None, None
        if isinstance(rating_value, bool) or not isinstance(rating_value, int):
            raise ValidationError("rating_value must be an integer")
        low, high = RATING_BOUNDS[question.question_type]
        if not low <= rating_value <= high:
            raise ValidationError(f"rating_value must be between {low} and {high}")
        return rating_value, text_value or None

    if rating_value is not None:
        raise ValidationError(f"Questions of type {question.question_type.value} do not take a rating")
    if question.question_type == QuestionType.YES_NO and text_value:
        text_value = str(text_value).strip().lower()
        if text_value not in YES_NO_VALUES:
            raise ValidationError("yes_no answers must be 'yes' or 'no'")
    return None, text_value or None


def _load_question(question_id: str) -> Question:
    question = db.session.get(Question, question_id) if question_id else None
    if question is None:
        raise NotFoundError(f"Question {question_id} not found")
    return question


def _upsert_answers(session_id: str, answer_type: ParticipantRole, rows: list[dict]) -> None:
    now = datetime.now(timezone.utc)
    stmt = upsert_statement(Answer).values([
        {
            "id": generate_id(),
            "one_on_one_id": session_id,
            "question_id": row["question_id"],
            "answer_type": answer_type,
            "rating_value": row["rating_value"],
            "text_value": row["text_value"],
            "created_at": now,
            "updated_at": now,
        }
        for row in rows
    ])
    stmt = stmt.on_conflict_do_update(
        index_elements=["one_on_one_id", "question_id", "answer_type"],
        set_={
            "rating_value": stmt.excluded.rating_value,
            "text_value": stmt.excluded.text_value,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.session.execute(stmt)


def save_answer(
    user: User,
    session_id: str,
    question_id: str,
    answer_type,
    rating_value=None,
    text_value=None,
) -> Answer:
    """Insert or update the caller's answer to one question."""
    answer_type = parse_answer_type(answer_type)
    session = load_session(session_id)
    require_answer_author(user, session, answer_type)
    question = _load_question(question_id)
    rating_value, text_value = validate_answer_value(question, rating_value, text_value)

    with storage_errors("save answer"):
        _upsert_answers(session.id, answer_type, [
            {"question_id": question.id, "rating_value": rating_value, "text_value": text_value},
        ])
        db.session.commit()

    return Answer.query.filter_by(
        one_on_one_id=session.id, question_id=question.id, answer_type=answer_type
    ).one()


def save_answers_batch(user: User, session_id: str, answer_type, answers) -> int:
    """Upsert several answers in one statement.

    Entries with neither a rating nor text are ignored. Every entry is
    validated before anything is written.

    Returns:
        Number of answers saved.
    """
    if not session_id or not answer_type or not isinstance(answers, list):
        raise ValidationError("one_on_one_id, answer_type, and answers array are required")
    answer_type = parse_answer_type(answer_type)
    session = load_session(session_id)
    require_answer_author(user, session, answer_type)

    rows: dict[str, dict] = {}
    for entry in answers:
        if not isinstance(entry, dict):
            raise ValidationError("Each answer must be an object")
        rating_value = entry.get("rating_value")
        text_value = entry.get("text_value")
        if rating_value is None and not text_value:
            continue
        question = _load_question(entry.get("question_id"))
        rating_value, text_value = validate_answer_value(question, rating_value, text_value)
        # Last entry wins for a repeated question
        rows[question.id] = {
            "question_id": question.id,
            "rating_value": rating_value,
            "text_value": text_value,
        }

    if not rows:
        return 0

    with storage_errors("save answers"):
        _upsert_answers(session.id, answer_type, list(rows.values()))
        db.session.commit()

    logger.info(f"Saved {len(rows)} {answer_type.value} answer(s) for 1-on-1 {session.id}")
    return len(rows)


def list_answers(user: User, session_id: str) -> list[Answer]:
    session = load_session(session_id)
    require_session_access(user, session)
    return (
        Answer.query.filter_by(one_on_one_id=session.id)
        .options(selectinload(Answer.question))
        .join(Answer.question)
        .order_by(Question.sort_order.asc(), Answer.answer_type.asc())
        .all()
    )


def save_note(user: User, session_id: str, note_type, content: str | None) -> Note:
    """Insert or update the session's note of ``note_type``, attributed to the caller."""
    note_type = parse_note_type(note_type)
    if content is None:
        raise ValidationError("content is required")
    session = load_session(session_id)
    require_note_author(user, session, note_type)

    now = datetime.now(timezone.utc)
    with storage_errors("save note"):
        stmt = upsert_statement(Note).values(
            id=generate_id(),
            one_on_one_id=session.id,
            note_type=note_type,
            content=content,
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["one_on_one_id", "note_type"],
            set_={
                "content": stmt.excluded.content,
                "created_by": stmt.excluded.created_by,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.session.execute(stmt)
        db.session.commit()

    return Note.query.filter_by(one_on_one_id=session.id, note_type=note_type).one()


def list_notes(user: User, session_id: str) -> list[Note]:
    session = load_session(session_id)
    require_session_access(user, session)
    return Note.query.filter_by(one_on_one_id=session.id).order_by(Note.note_type.asc()).all()


def active_questions(team_id: str | None = None) -> list[Question]:
    """Active company questions plus active questions of ``team_id``, by sort order."""
    scope_filter = Question.scope == QuestionScope.COMPANY
    if team_id:
        scope_filter = or_(
            scope_filter,
            (Question.scope == QuestionScope.TEAM) & (Question.team_id == team_id),
        )
    return (
        Question.query.filter(Question.is_active.is_(True), scope_filter)
        .order_by(Question.sort_order.asc(), Question.created_at.asc())
        .all()
    )


def questions_for_session(user: User, session_id: str) -> list[Question]:
    session = load_session(session_id)
    require_session_access(user, session)
    return active_questions(session.team_id)
