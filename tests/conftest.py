import os
from datetime import date, datetime

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.database import Base
from backend.models import Subject, Topic, User

NOW = datetime(2024, 3, 10, 9, 0)
TODAY = NOW.date()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(**fields):
        fields.setdefault("name", "Asha")
        fields.setdefault("daily_study_goal", "1 hour")
        fields.setdefault("created_at", NOW)
        user = User(**fields)
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def make_subject(db):
    def _make_subject(user, name="Math", exam_date=None):
        subject = Subject(user_id=user.id, name=name, exam_date=exam_date, created_at=NOW)
        db.add(subject)
        db.commit()
        return subject
    return _make_subject


@pytest.fixture
def make_topic(db):
    def _make_topic(user, subject=None, name="Topic", **fields):
        fields.setdefault("created_at", NOW)
        topic = Topic(
            user_id=user.id,
            subject_id=subject.id if subject is not None else None,
            name=name,
            **fields
        )
        db.add(topic)
        db.commit()
        return topic
    return _make_topic


def days_from_today(n: int) -> date:
    return date.fromordinal(TODAY.toordinal() + n)
