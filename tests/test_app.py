"""Tests for app wiring: error envelopes, health checks, headers and email rendering."""

import asyncio
from datetime import datetime, timezone

import pytest

from cleanpro import email_service
from cleanpro.email_templates import admin_invitation_template, password_reset_template
from cleanpro.shared.clock import utcnow
from cleanpro.shared.validators import validate_email, validate_full_name, validate_phone


def test_root_and_health(client):
    assert client.get("/").json() == {"message": "CleanPro API is running"}
    assert client.get("/health").json() == {"status": "healthy"}


def test_api_health_checks_database(client):
    body = client.get("/api/health").json()
    assert body == {"status": "healthy", "database": "connected"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_security_headers(client):
    response = client.get("/")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "no-store" in response.headers["Cache-Control"]

    # Excluded paths stay untouched
    assert "X-Frame-Options" not in client.get("/health").headers


def test_cors_preflight(client):
    response = client.options(
        "/api/auth/login",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


class TestEmailTemplates:
    def test_invitation_contains_code_and_escapes_name(self):
        mjml = admin_invitation_template("<Sam>", "042917", "sub_admin", 24)
        assert "042917" in mjml
        assert "&lt;Sam&gt;" in mjml
        assert "Sub-admin" in mjml
        assert "24 hours" in mjml

    def test_reset_contains_link(self):
        mjml = password_reset_template("Jane", "http://localhost:3000/reset-password?token=abc")
        assert 'href="http://localhost:3000/reset-password?token=abc"' in mjml

    def test_send_without_api_key_fails(self):
        with pytest.raises(email_service.EmailDeliveryError):
            asyncio.run(email_service.send_email("jane@example.com", "Hello", "<mjml></mjml>"))


class TestValidators:
    def test_email(self):
        assert validate_email("  Jane@Example.COM ") == "jane@example.com"
        with pytest.raises(ValueError):
            validate_email("jane@example")

    @pytest.mark.parametrize(
        "raw, expected",
        [("(555) 123-4567", "5551234567"), ("+44 20 7946 0958", "+442079460958"), ("  ", None), (None, None)],
    )
    def test_phone(self, raw, expected):
        assert validate_phone(raw) == expected

    @pytest.mark.parametrize("raw", ["123", "1" * 16])
    def test_bad_phone(self, raw):
        with pytest.raises(ValueError):
            validate_phone(raw)

    def test_full_name(self):
        assert validate_full_name("  Mary   Ann  Lee ") == "Mary Ann Lee"
        for bad in ["J", "R2D2", "Jane-Doe"]:
            with pytest.raises(ValueError):
                validate_full_name(bad)


def test_utcnow_is_naive_utc():
    before = datetime.now(timezone.utc).replace(tzinfo=None)
    stamp = utcnow()
    after = datetime.now(timezone.utc).replace(tzinfo=None)

    assert stamp.tzinfo is None
    assert before <= stamp <= after
