"""Factory Boy factory definitions for all domain models.

Each factory produces a valid, persistable model instance with
correct foreign keys, valid enum values, and non-null required fields.
"""

from datetime import datetime, timezone

import factory
from factory.alchemy import SQLAlchemyModelFactory

from review_tracker.models import (
    ActionItem,
    ActionStatus,
    Answer,
    MetricsRun,
    MetricsRunStatus,
    MetricsSnapshot,
    Note,
    NoteType,
    Notification,
    NotificationType,
    OneOnOne,
    ParticipantRole,
    Question,
    QuestionScope,
    QuestionType,
    SessionStatus,
    Team,
    User,
    UserRole,
)


class UserFactory(SQLAlchemyModelFactory):
    class Meta:
        model = User
        sqlalchemy_session = None  # Set via fixture
        sqlalchemy_session_persistence = "commit"

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Sequence(lambda n: f"User {n}")
    role = UserRole.DEVELOPER


class TeamFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Team
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    name = factory.Sequence(lambda n: f"Team {n}")
    manager = None

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        if not extracted:
            return
        self.members.extend(extracted)


class OneOnOneFactory(SQLAlchemyModelFactory):
    class Meta:
        model = OneOnOne
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    developer = factory.SubFactory(UserFactory)
    manager = factory.SubFactory(UserFactory, role=UserRole.MANAGER)
    team = None
    month_year = "2026-10"
    session_number = 1
    title = factory.LazyAttribute(lambda o: f"Session {o.session_number}")
    status = SessionStatus.DRAFT


class QuestionFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Question
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    question_text = factory.Sequence(lambda n: f"Question {n}?")
    question_type = QuestionType.RATING_1_5
    scope = QuestionScope.COMPANY
    is_active = True
    sort_order = factory.Sequence(lambda n: n)


class AnswerFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Answer
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    one_on_one = factory.SubFactory(OneOnOneFactory)
    question = factory.SubFactory(QuestionFactory)
    answer_type = ParticipantRole.DEVELOPER
    rating_value = 4
    text_value = None


class NoteFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Note
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    one_on_one = factory.SubFactory(OneOnOneFactory)
    note_type = NoteType.DEVELOPER_NOTES
    content = factory.Sequence(lambda n: f"Note {n}")
    created_by = factory.LazyAttribute(lambda o: o.one_on_one.developer_id)


class ActionItemFactory(SQLAlchemyModelFactory):
    class Meta:
        model = ActionItem
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    one_on_one = factory.SubFactory(OneOnOneFactory)
    description = factory.Sequence(lambda n: f"Action {n}")
    status = ActionStatus.PENDING
    assigned_to = ParticipantRole.DEVELOPER
    due_date = None


class MetricsSnapshotFactory(SQLAlchemyModelFactory):
    class Meta:
        model = MetricsSnapshot
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    one_on_one = factory.SubFactory(OneOnOneFactory, status=SessionStatus.COMPLETED)
    developer_id = factory.LazyAttribute(lambda o: o.one_on_one.developer_id)
    team_id = factory.LazyAttribute(lambda o: o.one_on_one.team_id)
    month_year = factory.LazyAttribute(lambda o: o.one_on_one.month_year)
    average_score = 4.0
    metric_data = factory.LazyFunction(lambda: {"rating_alignment": 0.5})


class MetricsRunFactory(SQLAlchemyModelFactory):
    class Meta:
        model = MetricsRun
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    one_on_one = factory.SubFactory(OneOnOneFactory, status=SessionStatus.COMPLETED)
    status = MetricsRunStatus.PENDING
    attempts = 0


class NotificationFactory(SQLAlchemyModelFactory):
    class Meta:
        model = Notification
        sqlalchemy_session = None
        sqlalchemy_session_persistence = "commit"

    user = factory.SubFactory(UserFactory)
    notification_type = NotificationType.ONE_ON_ONE_REMINDER
    title = "1-on-1 Reminder"
    message = factory.Sequence(lambda n: f"Reminder {n}")
    is_read = False
    created_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))


ALL_FACTORIES = (
    UserFactory,
    TeamFactory,
    OneOnOneFactory,
    QuestionFactory,
    AnswerFactory,
    NoteFactory,
    ActionItemFactory,
    MetricsSnapshotFactory,
    MetricsRunFactory,
    NotificationFactory,
)
