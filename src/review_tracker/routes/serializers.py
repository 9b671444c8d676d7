"""JSON serialisation helpers shared by the API blueprints."""

from datetime import date, datetime

from flask import jsonify

from ..models.action_item import ActionItem
from ..models.answer import Answer
from ..models.metrics import MetricsRun, MetricsSnapshot
from ..models.note import Note
from ..models.notification import Notification
from ..models.one_on_one import OneOnOne
from ..models.question import Question
from ..models.team import Team
from ..models.user import User


def envelope(data, status: int = 200):
    """Standard success response: {"success": true, "data": ...}."""
    return jsonify({"success": True, "data": data}), status


def _iso(value: datetime | date | None) -> str | None:
    return value.isoformat() if value else None


def user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "email": user.email, "full_name": user.full_name}


def user_to_dict(user: User, include_teams: bool = True) -> dict:
    data = {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "role": user.role.value,
        "created_at": _iso(user.created_at),
        "updated_at": _iso(user.updated_at),
    }
    if include_teams:
        data["team_ids"] = sorted(team.id for team in user.teams)
    return data


def team_to_dict(team: Team) -> dict:
    return {
        "id": team.id,
        "name": team.name,
        "manager_id": team.manager_id,
        "manager": user_summary(team.manager),
        "member_ids": sorted(member.id for member in team.members),
        "created_at": _iso(team.created_at),
        "updated_at": _iso(team.updated_at),
    }


def session_to_dict(session: OneOnOne) -> dict:
    return {
        "id": session.id,
        "developer_id": session.developer_id,
        "manager_id": session.manager_id,
        "team_id": session.team_id,
        "developer": user_summary(session.developer),
        "manager": user_summary(session.manager),
        "month_year": session.month_year,
        "session_number": session.session_number,
        "title": session.title,
        "status": session.status.value,
        "developer_submitted_at": _iso(session.developer_submitted_at),
        "manager_reviewed_at": _iso(session.manager_reviewed_at),
        "completed_at": _iso(session.completed_at),
        "created_at": _iso(session.created_at),
        "updated_at": _iso(session.updated_at),
    }


def question_to_dict(question: Question) -> dict:
    return {
        "id": question.id,
        "question_text": question.question_text,
        "question_type": question.question_type.value,
        "scope": question.scope.value,
        "category": question.category.value if question.category else None,
        "team_id": question.team_id,
        "is_active": question.is_active,
        "sort_order": question.sort_order,
    }


def answer_to_dict(answer: Answer, include_question: bool = False) -> dict:
    data = {
        "id": answer.id,
        "one_on_one_id": answer.one_on_one_id,
        "question_id": answer.question_id,
        "answer_type": answer.answer_type.value,
        "rating_value": answer.rating_value,
        "text_value": answer.text_value,
        "created_at": _iso(answer.created_at),
        "updated_at": _iso(answer.updated_at),
    }
    if include_question:
        data["question"] = question_to_dict(answer.question)
    return data


def note_to_dict(note: Note) -> dict:
    return {
        "id": note.id,
        "one_on_one_id": note.one_on_one_id,
        "note_type": note.note_type.value,
        "content": note.content,
        "created_by": note.created_by,
        "created_at": _iso(note.created_at),
        "updated_at": _iso(note.updated_at),
    }


def action_item_to_dict(item: ActionItem) -> dict:
    return {
        "id": item.id,
        "one_on_one_id": item.one_on_one_id,
        "description": item.description,
        "status": item.status.value,
        "assigned_to": item.assigned_to.value,
        "assignee_id": item.assignee_id,
        "due_date": _iso(item.due_date),
        "completed_at": _iso(item.completed_at),
        "created_at": _iso(item.created_at),
        "updated_at": _iso(item.updated_at),
    }


def snapshot_to_dict(snapshot: MetricsSnapshot | None) -> dict | None:
    if snapshot is None:
        return None
    return {
        "id": snapshot.id,
        "one_on_one_id": snapshot.one_on_one_id,
        "developer_id": snapshot.developer_id,
        "team_id": snapshot.team_id,
        "month_year": snapshot.month_year,
        "average_score": snapshot.average_score,
        "metric_data": snapshot.metric_data,
        "created_at": _iso(snapshot.created_at),
        "updated_at": _iso(snapshot.updated_at),
    }


def metrics_run_to_dict(run: MetricsRun | None) -> dict | None:
    if run is None:
        return None
    return {
        "id": run.id,
        "one_on_one_id": run.one_on_one_id,
        "status": run.status.value,
        "attempts": run.attempts,
        "last_error": run.last_error,
        "created_at": _iso(run.created_at),
        "finished_at": _iso(run.finished_at),
    }


def notification_to_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "notification_type": notification.notification_type.value,
        "title": notification.title,
        "message": notification.message,
        "related_id": notification.related_id,
        "related_type": notification.related_type,
        "is_read": notification.is_read,
        "is_emailed": notification.is_emailed,
        "created_at": _iso(notification.created_at),
        "read_at": _iso(notification.read_at),
    }


def export_to_dict(session: OneOnOne) -> dict:
    """Full session record for exports."""
    data = session_to_dict(session)
    data["answers"] = [answer_to_dict(a) for a in session.answers]
    data["notes"] = [note_to_dict(n) for n in session.notes]
    data["action_items"] = [action_item_to_dict(i) for i in session.action_items]
    data["metrics"] = snapshot_to_dict(session.metrics_snapshot)
    return data
