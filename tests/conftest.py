"""
Shared pytest fixtures.

Uses a file-backed SQLite database so no Postgres is required for tests.
Every table is emptied after each test so seeded projects never leak
between comparisons.
"""
import uuid
from datetime import date
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base, get_db
from app.main import app
from app.models.comparison_stage import ComparisonStage
from app.models.document import Document
from app.models.project import SolarProject

SQLITE_URL = "sqlite:///./test_solar_ops.db"

engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    db = TestingSessionLocal()
    try:
        db.query(Document).delete()
        db.query(SolarProject).delete()
        db.query(ComparisonStage).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_project(db):
    """Insert a project row; milestone dates are passed as keyword args."""
    def _make(code: str, name: Optional[str] = None, **fields) -> SolarProject:
        project = SolarProject(
            id=str(uuid.uuid4()),
            project_code=code,
            project_name=name or f"Project {code}",
            **fields,
        )
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
    return _make


@pytest.fixture()
def make_document(db):
    def _make(
        project: SolarProject,
        code: Optional[str] = None,
        label: Optional[str] = None,
        submitted_at: Optional[date] = None,
        issued_at: Optional[date] = None,
        is_current: bool = True,
        is_deleted: bool = False,
    ) -> Document:
        doc = Document(
            id=str(uuid.uuid4()),
            project_id=project.id,
            doc_type=label,
            doc_type_code=code,
            submitted_at=submitted_at,
            issued_at=issued_at,
            is_current=is_current,
            is_deleted=is_deleted,
        )
        db.add(doc)
        db.commit()
        return doc
    return _make
