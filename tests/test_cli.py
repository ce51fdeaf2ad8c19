# tests/test_cli.py
"""Tests for the admin CLI."""

import pytest

from medicare import cli


@pytest.fixture(autouse=True)
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.sqlite'}")
    monkeypatch.delenv("EMAIL_USER", raising=False)
    monkeypatch.delenv("EMAIL_PASS", raising=False)


def test_init(capsys):
    assert cli.main(["init"]) == 0
    assert "ready" in capsys.readouterr().out


def test_add_list_delete(capsys):
    assert cli.main(["add-patient", "--name", "Anna", "--email", "anna@x.com", "--phone", "555"]) == 0
    out = capsys.readouterr().out
    # mail is not configured in tests
    assert "Patient created: 1 (email sent: no)" in out

    assert cli.main(["list", "patients"]) == 0
    assert "1 | Anna | anna@x.com | 555 | -" in capsys.readouterr().out

    assert cli.main(["delete-patient", "1"]) == 0
    assert cli.main(["delete-patient", "1"]) == 1
    assert "Error: Patient not found" in capsys.readouterr().out


def test_duplicate_email(capsys):
    cli.main(["add-patient", "--name", "A", "--email", "a@x.com", "--phone", "1"])
    assert cli.main(["add-patient", "--name", "B", "--email", "a@x.com", "--phone", "2"]) == 1
    assert "Error: Email already exists" in capsys.readouterr().out


def test_list_contacts_empty(capsys):
    assert cli.main(["list", "contacts"]) == 0
    assert capsys.readouterr().out == ""
