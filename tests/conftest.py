"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from library_lending.api.main import create_app
from library_lending.api.dependencies import get_clock
from library_lending.domain.models import LendingPolicy
from library_lending.infrastructure.database.models import Base, Book, Member
from library_lending.infrastructure.database.repositories import BookRepository, MemberRepository
from library_lending.infrastructure.database.session import get_db
from library_lending.services.lending import LendingService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Day 0 of every scenario
START_DATE = date(2024, 3, 1)


class FakeClock:
    """Controllable stand-in for date.today"""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> date:
        self.today = self.today + timedelta(days=days)
        return self.today


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START_DATE)


@pytest.fixture
def policy() -> LendingPolicy:
    """Default rules: 14 day loans, 5 books, $1/day after 1 grace day, $50 ceiling"""
    return LendingPolicy()


@pytest.fixture
def service(db: Session, policy: LendingPolicy, clock: FakeClock) -> LendingService:
    return LendingService(db, policy, today=clock, request_id="test")


@pytest.fixture
def make_book(db: Session) -> Callable[..., Book]:
    """Factory for committed books"""
    counter = {"n": 0}

    def _make(total_copies: int = 1, title: str | None = None) -> Book:
        counter["n"] += 1
        book = BookRepository(db).create_book(
            title=title or f"Book {counter['n']}",
            total_copies=total_copies,
            isbn=f"978-0-{counter['n']:06d}",
        )
        db.commit()
        return book

    return _make


@pytest.fixture
def make_member(db: Session) -> Callable[..., Member]:
    """Factory for committed members"""
    counter = {"n": 0}

    def _make(membership_status: str = "ACTIVE", name: str | None = None) -> Member:
        counter["n"] += 1
        member = MemberRepository(db).create_member(
            name=name or f"Member {counter['n']}",
            email=f"member{counter['n']}@example.com",
            membership_status=membership_status,
        )
        db.commit()
        return member

    return _make


@pytest.fixture
def client(db: Session, clock: FakeClock) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


@pytest.fixture
def other_db(db: Session) -> Generator[Session, None, None]:
    """Second session on the test database, standing in for a concurrent request"""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def other_service(other_db: Session, policy: LendingPolicy, clock: FakeClock) -> LendingService:
    return LendingService(other_db, policy, today=clock, request_id="test-concurrent")
