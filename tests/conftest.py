# tests/conftest.py
"""Shared fixtures: SQLite database per test, uploads in tmp_path, fake mail transport."""

import pytest
from fastapi.testclient import TestClient

from medicare.api_main import create_app
from medicare.config import Settings
from medicare.db import build_engine, build_session_factory, db_session, init_db
from medicare.errors import MailError


class RecordingMailer:
    """Mail transport that keeps the messages instead of sending them."""

    def __init__(self):
        self.sent = []

    def send(self, to_address, subject, html_body):
        self.sent.append((to_address, subject, html_body))


class FailingMailer:
    def __init__(self):
        self.attempts = 0

    def send(self, to_address, subject, html_body):
        self.attempts += 1
        raise MailError("smtp down")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.sqlite'}",
        uploads_dir=tmp_path / "uploads",
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(settings, mailer):
    app = create_app(settings, mailer=mailer)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session_factory(settings):
    engine = build_engine(settings.database_url)
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def session(session_factory):
    with db_session(session_factory) as s:
        yield s
