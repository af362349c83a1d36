from __future__ import annotations

import os

# Settings are read at import time; point them at an in-memory database first.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("GENERATION_TIME_BUDGET_SECONDS", "0")

import pytest


@pytest.fixture()
def db():
    from core.bootstrap import ensure_schema
    from core.database import ENGINE, SessionLocal
    from models.base import Base

    ensure_schema(ENGINE)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=ENGINE)


@pytest.fixture()
def client(db):
    from fastapi.testclient import TestClient

    from main import app

    with TestClient(app) as c:
        yield c
