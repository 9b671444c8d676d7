"""Seed the question catalogue from a YAML file."""

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from ..database import db
from ..models.question import Question, QuestionCategory, QuestionScope, QuestionType
from ..models.team import Team
from .errors import NotFoundError, ValidationError, storage_errors

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = Path(__file__).resolve().parent.parent / "data" / "questions.yaml"


@dataclass
class SeedResult:
    created: int = 0
    skipped: int = 0


def load_seed_file(path: Path | str | None = None) -> list[dict]:
    path = Path(path) if path else DEFAULT_SEED_PATH
    if not path.exists():
        raise NotFoundError(f"Seed file not found: {path}")
    with open(path, "r") as f:
        content = yaml.safe_load(f) or {}
    entries = content.get("questions") if isinstance(content, dict) else None
    if not isinstance(entries, list):
        raise ValidationError(f"{path} must contain a 'questions' list")
    return entries


def _build_question(entry: dict, position: int) -> Question:
    text = (entry.get("question_text") or "").strip()
    if not text:
        raise ValidationError(f"Question {position}: question_text is required")
    try:
        question_type = QuestionType(entry.get("question_type"))
        scope = QuestionScope(entry.get("scope", QuestionScope.COMPANY.value))
        category = QuestionCategory(entry["category"]) if entry.get("category") else None
    except ValueError as e:
        raise ValidationError(f"Question {position}: {e}")

    team_id = entry.get("team_id")
    if scope == QuestionScope.TEAM:
        if not team_id or db.session.get(Team, team_id) is None:
            raise ValidationError(f"Question {position}: team-scoped questions need an existing team_id")
    else:
        team_id = None

    return Question(
        question_text=text,
        question_type=question_type,
        scope=scope,
        category=category,
        team_id=team_id,
        is_active=bool(entry.get("is_active", True)),
        sort_order=int(entry.get("sort_order", position)),
    )


def seed_questions(path: Path | str | None = None) -> SeedResult:
    """
    Insert questions that do not exist yet (matched on question_text and team).

    Every entry is validated before anything is written.
    """
    entries = load_seed_file(path)
    questions = [_build_question(entry, i) for i, entry in enumerate(entries, start=1)]

    result = SeedResult()
    with storage_errors("seed questions"):
        for question in questions:
            exists = Question.query.filter_by(
                question_text=question.question_text, team_id=question.team_id
            ).first()
            if exists is not None:
                result.skipped += 1
                continue
            db.session.add(question)
            result.created += 1
        db.session.commit()

    logger.info(f"Seeded questions: {result.created} created, {result.skipped} already present")
    return result
