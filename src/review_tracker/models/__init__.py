"""Database models package.

This package contains all SQLAlchemy model definitions for Review Tracker.

Models:
    - User: Signed-in person with an application-wide role
    - Team: Group of users with an optional manager (team_memberships join table)
    - OneOnOne: Monthly review session between a developer and a manager
    - Question: Recurring company- or team-scoped question
    - Answer: A participant's answer to one question in one session
    - Note: Developer notes / manager feedback on a session
    - ActionItem: Follow-up owned by one session participant
    - MetricsSnapshot: Denormalised rating summary of a completed session
    - MetricsRun: Tracked metrics follow-up for a completed session
    - Notification: Per-user inbox entry

Enums:
    - UserRole: admin, manager, developer
    - SessionStatus: draft, submitted, reviewed, completed
    - QuestionType: rating_1_5, rating_1_10, text, yes_no
    - ParticipantRole: developer, manager
    - ActionStatus: pending, in_progress, completed
    - MetricsRunStatus: pending, succeeded, failed
"""

from .action_item import OPEN_ACTION_STATUSES, ActionItem, ActionStatus
from .answer import Answer, ParticipantRole
from .metrics import MetricsRun, MetricsRunStatus, MetricsSnapshot
from .note import Note, NoteType
from .notification import Notification, NotificationType
from .one_on_one import OneOnOne, SessionStatus
from .question import RATING_BOUNDS, Question, QuestionCategory, QuestionScope, QuestionType
from .team import Team, team_memberships
from .user import User, UserRole

__all__ = [
    # Models
    "User",
    "Team",
    "OneOnOne",
    "Question",
    "Answer",
    "Note",
    "ActionItem",
    "MetricsSnapshot",
    "MetricsRun",
    "Notification",
    "team_memberships",
    # Enums
    "UserRole",
    "SessionStatus",
    "QuestionType",
    "QuestionScope",
    "QuestionCategory",
    "ParticipantRole",
    "NoteType",
    "ActionStatus",
    "MetricsRunStatus",
    "NotificationType",
    # Constants
    "RATING_BOUNDS",
    "OPEN_ACTION_STATUSES",
]
