import pytest
import os
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment variables
os.environ["NODE_ENV"] = "test"
os.environ["STORAGE_BACKEND"] = "database"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="learnhub-uploads-")
os.environ["LOG_LEVEL"] = "WARNING"

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app import app
from models import AchievementType, Base, CourseLevel, LessonType, UserRole
from storage import DatabaseStorage, MemStorage, get_storage
from utils.jwt_utils import jwt_manager
from utils.passwords import hash_password

TEST_PASSWORD = "secret123"


@pytest.fixture(scope="session")
def test_engine():
    """In-memory SQLite engine shared by every connection"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db(test_engine):
    """Create test database session on a fresh schema"""
    Base.metadata.create_all(bind=test_engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def db_storage(test_db):
    return DatabaseStorage(test_db)


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """Each storage-level test runs against both backends"""
    if request.param == "memory":
        return MemStorage()
    return DatabaseStorage(request.getfixturevalue("test_db"))


@pytest.fixture(scope="function")
def client(storage):
    """Create test client bound to the parametrized storage"""
    app.dependency_overrides[get_storage] = lambda: storage

    yield TestClient(app)

    # Clean up dependency override
    app.dependency_overrides.clear()


def make_user(storage, username, role=UserRole.USER):
    return storage.create_user(
        username=username,
        password=hash_password(TEST_PASSWORD),
        email=f"{username}@example.com",
        display_name=username.title(),
        role=role,
    )


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user"""

    def _headers(user):
        token = jwt_manager.create_session_token(user.id, user.role.value)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def seeded(storage):
    """
    Two students, an admin and one course with three lessons:
    module 1 holds a 30 minute video and an exercise, module 2 a document.
    A course_completion achievement (required count 1) awards a badge.
    """
    student = make_user(storage, "student")
    other = make_user(storage, "other")
    admin = make_user(storage, "admin", role=UserRole.ADMIN)

    category = storage.create_category(name="Web Development", description="Web courses", icon_name="code")
    empty_category = storage.create_category(name="Robotics", description="No courses yet", icon_name="cpu")
    instructor = storage.create_instructor(name="Alex Nguyen", title="Senior Lecturer", bio="Teaches web")

    base_time = datetime(2024, 1, 1, 12, 0, 0)
    course = storage.create_course(
        title="Python Foundations",
        description="Start programming",
        level=CourseLevel.BEGINNER,
        duration="10 hours",
        price=0,
        instructor_id=instructor.id,
        created_at=base_time,
    )
    storage.set_course_categories(course.id, [category.id])

    module1 = storage.create_module(course_id=course.id, title="Getting Started", order=1)
    module2 = storage.create_module(course_id=course.id, title="Going Further", order=2)
    lesson1 = storage.create_lesson(
        module_id=module1.id, title="Intro video", type=LessonType.VIDEO, duration="00:30:00", order=1
    )
    lesson2 = storage.create_lesson(module_id=module1.id, title="First exercise", type=LessonType.EXERCISE, order=2)
    lesson3 = storage.create_lesson(module_id=module2.id, title="Cheat sheet", type=LessonType.DOCUMENT, order=1)

    second_course = storage.create_course(
        title="Advanced Databases",
        description="Indexes and query plans",
        level=CourseLevel.ADVANCED,
        created_at=base_time + timedelta(days=1),
    )
    empty_course = storage.create_course(
        title="Coming Soon",
        level=CourseLevel.INTERMEDIATE,
        created_at=base_time + timedelta(days=2),
    )

    badge = storage.create_badge(name="Course Finisher", description="Finished a course", type="course")
    achievement = storage.create_achievement(
        name="First Course Completed",
        type=AchievementType.COURSE_COMPLETION,
        required_count=1,
        badge_id=badge.id,
    )

    return SimpleNamespace(
        student=student,
        other=other,
        admin=admin,
        category=category,
        empty_category=empty_category,
        instructor=instructor,
        course=course,
        second_course=second_course,
        empty_course=empty_course,
        modules=[module1, module2],
        lessons=[lesson1, lesson2, lesson3],
        badge=badge,
        achievement=achievement,
    )
