"""
Shared fixtures. The environment is pointed at a throw-away SQLite file
before any application module reads its settings.
"""
import os

os.environ["DATABASE_URL"] = "sqlite:///./test_classroom.db"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)

from datetime import timedelta

import pytest

from database import Base, engine, SessionLocal, User, Classroom, Assignment, utcnow
from services import (
    hash_password,
    create_access_token,
    create_class,
    enroll_member,
    create_assignment,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh schema for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db(setup_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Factory creating users directly in the identity store."""
    counter = {"n": 0}

    def _make_user(role="student", name=None, email=None, password="secret"):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} {counter['n']}",
            email=email or f"{role}{counter['n']}@example.com",
            password_hash=hash_password(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def users(make_user):
    """admin, two teachers, three students."""
    return {
        "admin": make_user("admin", name="Admin"),
        "t1": make_user("teacher", name="Teacher One"),
        "t2": make_user("teacher", name="Teacher Two"),
        "s1": make_user("student", name="Student One"),
        "s2": make_user("student", name="Student Two"),
        "s3": make_user("student", name="Student Three"),
    }


@pytest.fixture
def classroom(db, users):
    """Class taught by t1 with s1 and s2 enrolled; s3 is not enrolled."""
    data = create_class(db, users["t1"], title="Algebra", code="ALG101")
    enroll_member(db, users["s1"], code="ALG101")
    enroll_member(db, users["s2"], code="alg101")
    return db.query(Classroom).filter(Classroom.id == data["id"]).first()


@pytest.fixture
def assignment(db, users, classroom):
    """Assignment created by t1, due in a week."""
    data = create_assignment(
        db, users["t1"], classroom.id,
        title="Linear equations",
        due_at=utcnow() + timedelta(days=7),
    )
    return db.query(Assignment).filter(Assignment.id == data["id"]).first()


@pytest.fixture
def make_overdue(db):
    def _make_overdue(assignment):
        assignment.due_at = utcnow() - timedelta(days=1)
        db.commit()
        return assignment

    return _make_overdue


@pytest.fixture
def auth_header():
    def _auth_header(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _auth_header
