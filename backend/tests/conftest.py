import json
import uuid
from dataclasses import dataclass

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from jobboard.database import get_db, get_session_factory, init_db
from jobboard.main import app
from jobboard.models import Company, Employer, Job, JobBookmark, Resume, User, UserProfile
from jobboard.services.audience import AudienceResolver
from jobboard.services.dispatcher import NotificationDispatcher
from jobboard.services.token_service import issue_token
from jobboard.utils.timestamps import utc_now

API = "/api/v1"

ALL_SECTIONS = ("contact", "bio", "skills", "links", "experience")


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=10000")
    cursor.close()


@dataclass
class SeededUser:
    id: str
    token: str
    employer_id: str | None = None

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"}


class Seeder:
    """Writes the rows owned by external collaborators (users, profiles, employers, jobs)."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def _user(self, db, user_type: str, **fields) -> User:
        uid = str(uuid.uuid4())
        user = User(
            id=uid,
            email=fields.pop("email", f"{uid[:8]}@example.com"),
            user_type=user_type,
            is_active=fields.pop("is_active", True),
            created_at=utc_now(),
            **fields,
        )
        db.add(user)
        return user

    def jobseeker(
        self,
        sections=ALL_SECTIONS,
        skills=("python", "sql", "docker"),
        preferred_location=None,
        preferred_job_types=(),
        with_profile=True,
        is_active=True,
        raw_skills=None,
    ) -> SeededUser:
        with self.session_factory() as db:
            contact = "contact" in sections
            user = self._user(
                db,
                "jobseeker",
                first_name="Ada" if contact else None,
                last_name="Lovelace" if contact else None,
                phone="+256700000000" if contact else None,
                is_active=is_active,
            )
            if with_profile:
                skill_list = list(skills) if "skills" in sections else list(skills)[:2]
                db.add(
                    UserProfile(
                        user_id=user.id,
                        bio="Backend engineer who enjoys building reliable data systems." if "bio" in sections else "Hi",
                        skills=raw_skills if raw_skills is not None else json.dumps(skill_list),
                        linkedin_url="https://linkedin.com/in/ada" if "links" in sections else None,
                        years_of_experience=4 if "experience" in sections else 0,
                        current_position="Engineer" if "experience" in sections else None,
                        preferred_location=preferred_location,
                        preferred_job_types=json.dumps(list(preferred_job_types)),
                        updated_at=utc_now(),
                    )
                )
            db.commit()
            token = issue_token(db, user.id)
            return SeededUser(id=user.id, token=token)

    def employer(self, company_name: str = "Acme Corp") -> SeededUser:
        with self.session_factory() as db:
            user = self._user(db, "employer", first_name="Grace", last_name="Hopper")
            company = Company(id=str(uuid.uuid4()), name=company_name)
            db.add(company)
            employer = Employer(id=str(uuid.uuid4()), user_id=user.id, company_id=company.id)
            db.add(employer)
            db.commit()
            token = issue_token(db, user.id)
            return SeededUser(id=user.id, token=token, employer_id=employer.id)

    def job(
        self,
        employer: SeededUser,
        title: str = "Backend Engineer",
        status: str = "open",
        skills=("python", "postgres"),
        location: str | None = "Kampala",
        employment_type: str | None = "full-time",
    ) -> str:
        with self.session_factory() as db:
            employer_row = db.query(Employer).filter(Employer.id == employer.employer_id).one()
            now = utc_now()
            job = Job(
                id=str(uuid.uuid4()),
                employer_id=employer_row.id,
                company_id=employer_row.company_id,
                title=title,
                location=location,
                employment_type=employment_type,
                skills_required=json.dumps(list(skills)),
                status=status,
                applications_count=0,
                created_at=now,
                updated_at=now,
            )
            db.add(job)
            db.commit()
            return job.id

    def resume(self, user: SeededUser) -> str:
        with self.session_factory() as db:
            resume = Resume(id=str(uuid.uuid4()), user_id=user.id, file_name="cv.pdf", created_at=utc_now())
            db.add(resume)
            db.commit()
            return resume.id

    def bookmark(self, user: SeededUser, job_id: str) -> None:
        with self.session_factory() as db:
            db.add(JobBookmark(id=str(uuid.uuid4()), user_id=user.id, job_id=job_id, saved_at=utc_now()))
            db.commit()

    def applications_count(self, job_id: str) -> int:
        with self.session_factory() as db:
            return db.query(Job.applications_count).filter(Job.id == job_id).scalar()


@pytest.fixture
def test_db(tmp_path):
    db_path = tmp_path / "jobboard.sqlite"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    init_db(db_path)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestSession
    yield TestSession
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def seed(test_db):
    return Seeder(test_db)


@pytest.fixture
def dispatcher(test_db):
    return NotificationDispatcher(test_db, AudienceResolver(test_db, batch_size=2), max_workers=4)


@pytest.fixture
def client(test_db):
    return TestClient(app)
