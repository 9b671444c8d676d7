"""1-on-1 session endpoints for participants: sessions, status, answers and notes."""

import logging

from flask import Blueprint, jsonify, request

from ..services import answers as answer_service
from ..services import one_on_ones as session_service
from ..services.errors import ValidationError
from ..services.identity import current_user
from ..services.lifecycle import update_status
from .serializers import (
    answer_to_dict,
    envelope,
    metrics_run_to_dict,
    note_to_dict,
    question_to_dict,
    session_to_dict,
)

logger = logging.getLogger(__name__)

one_on_ones_bp = Blueprint("one_on_ones", __name__, url_prefix="/api/one-on-ones")


@one_on_ones_bp.route("", methods=["GET"])
def list_my_sessions():
    """Sessions of the caller, split by the side they sit on.

    Returns:
        {as_developer: [...], as_manager: [...]}, newest month first
    """
    mine = session_service.list_my_sessions(current_user())
    return jsonify({
        "as_developer": [session_to_dict(s) for s in mine.as_developer],
        "as_manager": [session_to_dict(s) for s in mine.as_manager],
    })


@one_on_ones_bp.route("/current", methods=["POST"])
def current_month_session():
    """Get or create this month's session for a developer.

    Accepts JSON:
        - developer_id (optional): defaults to the caller
    """
    user = current_user()
    data = request.get_json(silent=True) or {}
    session = session_service.get_or_create_current_month(user, data.get("developer_id") or user.id)
    return envelope(session_to_dict(session))


@one_on_ones_bp.route("/<session_id>", methods=["GET"])
def get_session(session_id: str):
    return jsonify(session_to_dict(session_service.get_session(current_user(), session_id)))


@one_on_ones_bp.route("/<session_id>/status", methods=["PATCH"])
def change_status(session_id: str):
    """
    Move a session to a new status.

    Accepts JSON:
        - status (required): submitted, reviewed or completed

    Returns:
        200: {success, data: {session, from_status, metrics_run}}
        403: Caller's role can never set that status
        409: Transition not allowed from the current status
    """
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        raise ValidationError("status is required")

    result = update_status(session_id, data["status"], current_user())
    return envelope({
        "session": session_to_dict(result.session),
        "from_status": result.transition.from_state.value,
        "metrics_run": metrics_run_to_dict(result.metrics_run),
    })


@one_on_ones_bp.route("/<session_id>/questions", methods=["GET"])
def list_questions(session_id: str):
    questions = answer_service.questions_for_session(current_user(), session_id)
    return jsonify([question_to_dict(q) for q in questions])


@one_on_ones_bp.route("/<session_id>/answers", methods=["GET"])
def list_answers(session_id: str):
    answers = answer_service.list_answers(current_user(), session_id)
    return jsonify([answer_to_dict(a, include_question=True) for a in answers])


@one_on_ones_bp.route("/<session_id>/notes", methods=["GET"])
def list_notes(session_id: str):
    notes = answer_service.list_notes(current_user(), session_id)
    return jsonify([note_to_dict(n) for n in notes])


@one_on_ones_bp.route("/answers", methods=["POST"])
def save_answer():
    """
    Upsert one answer.

    Accepts JSON:
        - one_on_one_id, question_id, answer_type (required)
        - rating_value or text_value
    """
    data = request.get_json(silent=True) or {}
    missing = [f for f in ("one_on_one_id", "question_id", "answer_type") if not data.get(f)]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")

    answer = answer_service.save_answer(
        current_user(),
        data["one_on_one_id"],
        data["question_id"],
        data["answer_type"],
        rating_value=data.get("rating_value"),
        text_value=data.get("text_value"),
    )
    return envelope(answer_to_dict(answer))


@one_on_ones_bp.route("/answers/batch", methods=["POST"])
def save_answers_batch():
    """
    Upsert several answers of one author type.

    Accepts JSON:
        - one_on_one_id, answer_type (required)
        - answers: [{question_id, rating_value?, text_value?}]

    Returns:
        200: {success, data: {saved}}
    """
    data = request.get_json(silent=True) or {}
    saved = answer_service.save_answers_batch(
        current_user(),
        data.get("one_on_one_id"),
        data.get("answer_type"),
        data.get("answers"),
    )
    return envelope({"saved": saved})


@one_on_ones_bp.route("/notes", methods=["POST"])
def save_note():
    """
    Upsert the caller's note on a session.

    Accepts JSON:
        - one_on_one_id, note_type (required)
        - content
    """
    data = request.get_json(silent=True) or {}
    if not data.get("one_on_one_id") or not data.get("note_type"):
        raise ValidationError("one_on_one_id and note_type are required")

    note = answer_service.save_note(
        current_user(), data["one_on_one_id"], data["note_type"], data.get("content")
    )
    return envelope(note_to_dict(note))
