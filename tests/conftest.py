import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import uuid
from sqlalchemy.orm import sessionmaker
from app.core.database import Base, create_db_engine
from app.utils import deps as deps_utils
import main
from fastapi.testclient import TestClient
from app.core.config import settings
from app.core.security import create_access_token
from app.models.course import Course
from app.models.course_enrollment import Enrollment
from app.models.lecture import Lecture
from app.models.organization import Organization
from app.models.section import Section
from app.models.user import User

test_db_url = settings.TEST_DATABASE_URL or "sqlite:///./test.db"

@pytest.fixture(scope="session")
def database_engine():
    engine = create_db_engine(test_db_url)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    if test_db_url.startswith("sqlite"):
        os.remove("./test.db")

@pytest.fixture(scope="session")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)

@pytest.fixture(scope="function")
def db_session(session_factory, database_engine):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        with database_engine.begin() as connection:
            for table in reversed(Base.metadata.sorted_tables):
                connection.execute(table.delete())

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def organization_factory(db_session):
    def _organization_factory(name="Acme Training"):
        organization = Organization(name=name)
        db_session.add(organization)
        db_session.commit()
        db_session.refresh(organization)
        return organization
    return _organization_factory

@pytest.fixture
def user_factory(db_session):
    def _user_factory(organization=None, is_active=True):
        user = User(
            full_name="Test Learner",
            email=f"learner-{uuid.uuid4()}@test.com",
            is_active=is_active,
            organization_id=organization.id if organization else None,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _user_factory

@pytest.fixture
def course_factory(db_session):
    """Course with ``lecture_count`` lectures spread over ``section_count`` sections."""
    def _course_factory(lecture_count=4, section_count=1, title=None, cpd_points=None, passing_score=None,
                        lecture_duration=600):
        course = Course(
            title=title or "Infection Control Essentials",
            slug=f"course-{uuid.uuid4()}",
            cpd_points=cpd_points,
            passing_score=passing_score,
        )
        db_session.add(course)
        db_session.flush()

        sections = []
        for index in range(max(section_count, 1)):
            section = Section(title=f"Section {index + 1}", order=index, course_id=course.id)
            db_session.add(section)
            sections.append(section)
        db_session.flush()

        for index in range(lecture_count):
            section = sections[index % len(sections)]
            db_session.add(Lecture(
                title=f"Lecture {index + 1}",
                duration=lecture_duration,
                order=index,
                section_id=section.id,
            ))
        db_session.commit()
        db_session.refresh(course)
        return course
    return _course_factory

@pytest.fixture
def enroll(db_session):
    def _enroll(user, course):
        enrollment = Enrollment(user_id=user.id, course_id=course.id)
        db_session.add(enrollment)
        db_session.commit()
        db_session.refresh(enrollment)
        return enrollment
    return _enroll

@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _auth_headers
