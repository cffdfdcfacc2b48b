# backend/tests/conftest.py
"""
Pytest configuration for the booking backend.

Tests run against an in-memory SQLite database that is rebuilt for every
test. Route tests share the test's session with the app through a
``get_db`` override, and booking events are delivered inline so that
notification side effects can be asserted synchronously.
"""

import os

# Must be set before any app import: settings and the engine are created at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["NOTIFICATIONS_ENABLED"] = "true"

from datetime import date, time
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_event_publisher
from app.auth import create_access_token
from app.core.enums import RoleName
from app.database import Base
from app.events import EventPublisher
from app.events.handlers import register_notification_handlers
from app.main import app
from app.models.booking import Booking, BookingStatus
from app.models.trainer import TrainerProfile
from app.models.user import User
from app.services.email_console import ConsoleEmailService
from app.services.notification_service import NotificationService


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _make_user(db: Session, *, email: str, name: str, role: RoleName, **kwargs: Any) -> User:
    user = User(email=email, name=name, role=role.value, **kwargs)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def make_trainer(db: Session):
    """Factory for trainers with a profile; defaults to Mon/Wed 09:00-12:00 at 50/h."""

    def _make(
        email: str = "trainer@example.com",
        name: str = "Terry Trainer",
        hourly_rate: Optional[Any] = Decimal("50.00"),
        days: Optional[List[str]] = None,
        time_slots: Optional[List[Dict[str, str]]] = None,
        is_approved: bool = True,
    ) -> User:
        trainer = _make_user(
            db, email=email, name=name, role=RoleName.TRAINER, is_approved=is_approved
        )
        db.add(
            TrainerProfile(
                user_id=trainer.id,
                bio="Strength and conditioning coach",
                specialties=["strength"],
                hourly_rate=hourly_rate,
                availability_days=days if days is not None else ["monday", "wednesday"],
                availability_time_slots=(
                    time_slots
                    if time_slots is not None
                    else [{"start": "09:00", "end": "12:00"}]
                ),
            )
        )
        db.commit()
        db.refresh(trainer)
        return trainer

    return _make


@pytest.fixture
def trainer(make_trainer) -> User:
    return make_trainer()


@pytest.fixture
def client_user(db: Session) -> User:
    return _make_user(db, email="client@example.com", name="Casey Client", role=RoleName.MEMBER)


@pytest.fixture
def other_client(db: Session) -> User:
    return _make_user(db, email="other@example.com", name="Olive Other", role=RoleName.MEMBER)


@pytest.fixture
def admin_user(db: Session) -> User:
    return _make_user(db, email="admin@example.com", name="Ada Admin", role=RoleName.ADMIN)


@pytest.fixture
def make_booking(db: Session):
    """Insert a booking row directly, bypassing the service."""

    def _make(
        client: User,
        trainer: User,
        *,
        session_date: date = date(2024, 7, 1),
        start: time = time(10, 0),
        duration: int = 60,
        status: BookingStatus = BookingStatus.APPROVED,
        **kwargs: Any,
    ) -> Booking:
        end_minutes = start.hour * 60 + start.minute + duration
        booking = Booking(
            client_id=client.id,
            trainer_id=trainer.id,
            status=status.value,
            session_date=session_date,
            start_time=start,
            end_time=time(end_minutes // 60, end_minutes % 60),
            duration=duration,
            payment_amount=kwargs.pop("payment_amount", Decimal("50.00")),
            **kwargs,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def email_service() -> ConsoleEmailService:
    return ConsoleEmailService("bookings@test.local", keep_last=50)


@pytest.fixture
def inline_publisher(email_service: ConsoleEmailService) -> EventPublisher:
    publisher = EventPublisher(inline=True)
    register_notification_handlers(publisher, NotificationService(email_service))
    return publisher


@pytest.fixture
def api_client(db: Session, inline_publisher: EventPublisher) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_publisher] = lambda: inline_publisher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}


@pytest.fixture
def client_headers(client_user: User) -> Dict[str, str]:
    return auth_headers_for(client_user)


@pytest.fixture
def trainer_headers(trainer: User) -> Dict[str, str]:
    return auth_headers_for(trainer)


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
def auth_headers():
    """Header builder for users created inside a test."""
    return auth_headers_for
