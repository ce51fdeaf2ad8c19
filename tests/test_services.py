# tests/test_services.py
"""Tests for the domain services, against a real SQLite database."""

import pytest

from medicare import services
from medicare.db import db_session
from medicare.errors import DuplicateEmail, NotFound, ValidationError

from .conftest import FailingMailer, RecordingMailer


def _register(s, email="t1@x.com", mailer=None, upload=None):
    return services.register_patient(s, mailer or RecordingMailer(), "T", email, "123", upload)


class TestRegisterPatient:

    def test_register_and_read_back(self, session):
        mailer = RecordingMailer()
        outcome = services.register_patient(session, mailer, " Anna ", "anna@x.com", "555")

        assert outcome.email_sent is True
        assert mailer.sent[0][0] == "anna@x.com"

        p = services.get_patient(session, outcome.id)
        assert (p["name"], p["email"], p["phone"]) == ("Anna", "anna@x.com", "555")
        assert p["profile_picture"] is None
        assert p["created_at"]

    @pytest.mark.parametrize("name,email,phone", [
        ("", "a@x.com", "1"),
        ("A", None, "1"),
        ("A", "a@x.com", "   "),
    ])
    def test_missing_field(self, session, name, email, phone):
        with pytest.raises(ValidationError) as exc:
            services.register_patient(session, RecordingMailer(), name, email, phone)
        assert exc.value.message == "Name, email, and phone are required"
        assert services.list_patients(session) == []

    def test_validation_runs_before_upload(self, session):
        calls = []

        def upload():
            calls.append(1)
            return "patient-1-000000001.png"

        with pytest.raises(ValidationError):
            services.register_patient(session, RecordingMailer(), "A", "", "1", upload)
        assert calls == []

    def test_duplicate_email(self, session_factory):
        with db_session(session_factory) as s:
            _register(s, "dup@x.com")

        with db_session(session_factory) as s:
            with pytest.raises(DuplicateEmail) as exc:
                _register(s, "dup@x.com")
            assert exc.value.status_code == 400

        with db_session(session_factory) as s:
            assert len(services.list_patients(s)) == 1

    def test_mail_failure_keeps_registration(self, session):
        mailer = FailingMailer()
        outcome = _register(session, mailer=mailer)

        assert outcome.email_sent is False
        assert mailer.attempts == 1
        assert services.get_patient(session, outcome.id)["email"] == "t1@x.com"

    def test_stored_picture_reference(self, session):
        outcome = _register(session, upload=lambda: "patient-1-123456789.jpg")
        assert services.get_patient(session, outcome.id)["profile_picture"] == "patient-1-123456789.jpg"


class TestPatientDirectory:

    def test_list_most_recent_first(self, session):
        first = _register(session, "a@x.com").id
        second = _register(session, "b@x.com").id
        assert [p["id"] for p in services.list_patients(session)] == [second, first]

    def test_get_missing(self, session):
        with pytest.raises(NotFound):
            services.get_patient(session, 999)

    def test_get_non_numeric_id(self, session):
        with pytest.raises(NotFound):
            services.get_patient(session, "abc")

    @pytest.mark.parametrize("patient_id", ["1_0", "+1", " 1", "-1", "0", "99999999999999999999", None])
    def test_rejected_ids(self, session, patient_id):
        _register(session)
        with pytest.raises(NotFound):
            services.get_patient(session, patient_id)

    def test_update_without_file_keeps_picture(self, session):
        pid = _register(session, upload=lambda: "patient-1-111111111.png").id

        services.update_patient(session, pid, "New", "new@x.com", "999")

        p = services.get_patient(session, pid)
        assert (p["name"], p["email"], p["phone"]) == ("New", "new@x.com", "999")
        assert p["profile_picture"] == "patient-1-111111111.png"

    def test_update_with_file_replaces_picture(self, session):
        pid = _register(session, upload=lambda: "patient-1-111111111.png").id

        services.update_patient(session, pid, "T", "t1@x.com", "123", lambda: "patient-2-222222222.png")

        assert services.get_patient(session, pid)["profile_picture"] == "patient-2-222222222.png"

    def test_update_with_same_values(self, session):
        pid = _register(session).id
        services.update_patient(session, pid, "T", "t1@x.com", "123")

    def test_update_missing(self, session):
        with pytest.raises(NotFound):
            services.update_patient(session, 42, "A", "a@x.com", "1")

    def test_update_requires_fields(self, session):
        pid = _register(session).id
        with pytest.raises(ValidationError):
            services.update_patient(session, pid, "A", "", "1")

    def test_update_to_taken_email(self, session_factory):
        with db_session(session_factory) as s:
            _register(s, "a@x.com")
            pid = _register(s, "b@x.com").id

        with db_session(session_factory) as s:
            with pytest.raises(DuplicateEmail):
                services.update_patient(s, pid, "T", "a@x.com", "123")

    def test_delete_twice(self, session):
        pid = _register(session).id
        services.delete_patient(session, pid)
        with pytest.raises(NotFound):
            services.delete_patient(session, pid)
        assert services.list_patients(session) == []


class TestContactMessages:

    def test_submit_twice(self, session):
        first = services.submit_contact_message(session, "A", "a@x.com", "hi")
        second = services.submit_contact_message(session, "A", "a@x.com", "hi")

        assert first != second
        assert len(services.list_contact_messages(session)) == 2

    def test_missing_field(self, session):
        with pytest.raises(ValidationError) as exc:
            services.submit_contact_message(session, "A", "a@x.com", "")
        assert exc.value.message == "Name, email, and message are required"
