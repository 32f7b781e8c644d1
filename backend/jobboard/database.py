import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from jobboard.config import settings


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    # Broadcast workers write concurrently; wait for the writer lock instead of failing.
    cursor.execute("PRAGMA busy_timeout=10000")
    cursor.close()


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


engine = get_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Factory for work that must not share the request session (background tasks, broadcasts)."""
    return SessionLocal


SCHEMA_SQL = """\
-- ============================================================
-- USERS & AUTH
-- ============================================================
CREATE TABLE IF NOT EXISTS users (
    id              TEXT PRIMARY KEY,
    email           TEXT NOT NULL UNIQUE,
    first_name      TEXT,
    last_name       TEXT,
    phone           TEXT,
    user_type       TEXT NOT NULL CHECK(user_type IN ('jobseeker','employer','admin')),
    is_active       INTEGER NOT NULL DEFAULT 1,
    deleted_at      TEXT,
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_users_type ON users(user_type);

CREATE TABLE IF NOT EXISTS api_tokens (
    token_hash  TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    expires_at  REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_api_tokens_user ON api_tokens(user_id);

-- ============================================================
-- PROFILES (skills and preferred_job_types are JSON arrays)
-- ============================================================
CREATE TABLE IF NOT EXISTS user_profiles (
    user_id             TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
    bio                 TEXT,
    skills              TEXT NOT NULL DEFAULT '[]',
    linkedin_url        TEXT,
    github_url          TEXT,
    portfolio_url       TEXT,
    website_url         TEXT,
    years_of_experience INTEGER NOT NULL DEFAULT 0,
    current_position    TEXT,
    preferred_location  TEXT,
    preferred_job_types TEXT NOT NULL DEFAULT '[]',
    updated_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE TABLE IF NOT EXISTS resumes (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    file_name  TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_resumes_user ON resumes(user_id);

-- ============================================================
-- EMPLOYERS & COMPANIES
-- ============================================================
CREATE TABLE IF NOT EXISTS companies (
    id   TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS employers (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
    company_id TEXT REFERENCES companies(id) ON DELETE SET NULL
);

-- ============================================================
-- JOBS
-- ============================================================
CREATE TABLE IF NOT EXISTS jobs (
    id                 TEXT PRIMARY KEY,
    employer_id        TEXT NOT NULL REFERENCES employers(id) ON DELETE CASCADE,
    company_id         TEXT REFERENCES companies(id) ON DELETE SET NULL,
    title              TEXT NOT NULL,
    description        TEXT,
    location           TEXT,
    employment_type    TEXT,
    skills_required    TEXT NOT NULL DEFAULT '[]',
    status             TEXT NOT NULL DEFAULT 'open'
                       CHECK(status IN ('draft','open','closed','filled')),
    applications_count INTEGER NOT NULL DEFAULT 0 CHECK(applications_count >= 0),
    created_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_employer ON jobs(employer_id);

-- ============================================================
-- APPLICATIONS
-- ============================================================
CREATE TABLE IF NOT EXISTS job_applications (
    id                TEXT PRIMARY KEY,
    user_id           TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    job_id            TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    status            TEXT NOT NULL DEFAULT 'pending'
                      CHECK(status IN ('pending','reviewed','shortlisted','rejected',
                                       'accepted','withdrawn','cancelled')),
    cover_letter      TEXT,
    resume_id         TEXT REFERENCES resumes(id) ON DELETE SET NULL,
    portfolio_url     TEXT,
    expected_salary   REAL,
    availability_date TEXT,
    applied_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_applications_user ON job_applications(user_id);
CREATE INDEX IF NOT EXISTS idx_applications_job ON job_applications(job_id);
-- At most one active application per (user, job).
CREATE UNIQUE INDEX IF NOT EXISTS idx_applications_active_pair
    ON job_applications(user_id, job_id)
    WHERE status NOT IN ('withdrawn','cancelled');

-- ============================================================
-- BOOKMARKS
-- ============================================================
CREATE TABLE IF NOT EXISTS job_bookmarks (
    id       TEXT PRIMARY KEY,
    user_id  TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    job_id   TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
    saved_at TEXT NOT NULL,
    UNIQUE (user_id, job_id)
);

CREATE INDEX IF NOT EXISTS idx_bookmarks_job ON job_bookmarks(job_id);

-- ============================================================
-- NOTIFICATIONS
-- ============================================================
CREATE TABLE IF NOT EXISTS notifications (
    id         TEXT PRIMARY KEY,
    user_id    TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    type       TEXT NOT NULL,
    title      TEXT NOT NULL,
    message    TEXT NOT NULL,
    metadata   TEXT NOT NULL DEFAULT '{}',
    related_id TEXT,
    read       INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_notifications_user_created ON notifications(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_notifications_user_read ON notifications(user_id, read);
"""


# Post-schema ALTERs for databases created by earlier releases, applied in order.
MIGRATIONS: list[str] = []


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA_SQL)
    # Run migrations idempotently (ALTER TABLE fails silently if column exists)
    for migration in MIGRATIONS:
        try:
            conn.execute(migration)
            conn.commit()
        except sqlite3.OperationalError:
            pass  # column already exists
    conn.close()
