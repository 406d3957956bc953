"""
Tests for user management: the service wrapper and the auth_users command.
"""

from io import StringIO
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError
from firebase_admin import auth, exceptions as firebase_exceptions

from quickstart.auth_service import UserService, user_service
from quickstart.errors import CredentialError, SdkError


class FakeAuthBackend:
    """Dict-backed replacement for the firebase_admin.auth user functions."""

    def __init__(self):
        self.users = {}
        self.counter = 0

    def _find(self, field, value):
        for record in self.users.values():
            if getattr(record, field) == value:
                return record
        raise auth.UserNotFoundError(f"No user record found for {field}={value}")

    def get_user(self, uid, app=None):
        if uid not in self.users:
            raise auth.UserNotFoundError(f"No user record found for uid={uid}")
        return self.users[uid]

    def get_user_by_email(self, email, app=None):
        return self._find("email", email)

    def get_user_by_phone_number(self, phone_number, app=None):
        return self._find("phone_number", phone_number)

    def create_user(self, uid=None, app=None, **fields):
        if uid is None:
            self.counter += 1
            uid = f"generated-{self.counter}"
        if uid in self.users:
            raise auth.UidAlreadyExistsError("uid exists", None, None)
        record = SimpleNamespace(
            uid=uid,
            email=fields.get("email"),
            phone_number=fields.get("phone_number"),
            display_name=fields.get("display_name"),
            disabled=fields.get("disabled", False),
        )
        self.users[uid] = record
        return record

    def update_user(self, uid, app=None, **fields):
        record = self.get_user(uid)
        for key, value in fields.items():
            setattr(record, key, value)
        return record

    def delete_user(self, uid, app=None):
        self.get_user(uid)
        del self.users[uid]


@pytest.fixture
def fake_auth(monkeypatch):
    backend = FakeAuthBackend()
    for name in ("get_user", "get_user_by_email", "get_user_by_phone_number",
                 "create_user", "update_user", "delete_user"):
        monkeypatch.setattr(auth, name, getattr(backend, name))
    monkeypatch.setattr(user_service, "_app", object())
    with patch("quickstart.management.commands.auth_users.get_firebase_app"):
        yield backend


class TestUserService:
    """Test the SDK wrapper."""

    def test_get_user_is_idempotent(self, fake_auth):
        service = UserService(app=object())
        service.create_user_with_uid("some-uid")

        first = service.get_user("some-uid")
        second = service.get_user("some-uid")

        assert first == second
        assert first.uid == "some-uid"

    def test_missing_user_raises_sdk_error_with_code(self, fake_auth):
        with pytest.raises(SdkError) as exc_info:
            UserService(app=object()).get_user("nobody")

        assert exc_info.value.code == "NOT_FOUND"

    def test_invalid_argument_is_wrapped(self):
        with patch.object(auth, "get_user", side_effect=ValueError("Invalid uid")):
            with pytest.raises(SdkError) as exc_info:
                UserService(app=object()).get_user("")

        assert exc_info.value.code == "invalid-argument"

    def test_update_skips_fields_left_as_none(self):
        with patch.object(auth, "update_user") as mock_update:
            mock_update.return_value = SimpleNamespace(uid="u1")
            UserService(app="app").update_user("u1", display_name="Jane", email=None, phone_number=None,
                                               email_verified=None, password=None, photo_url=None,
                                               disabled=None)

        mock_update.assert_called_once_with("u1", app="app", display_name="Jane")

    def test_create_user_sends_sample_profile(self):
        with patch.object(auth, "create_user") as mock_create:
            mock_create.return_value = SimpleNamespace(uid="generated")
            UserService(app="app").create_user()

        kwargs = mock_create.call_args.kwargs
        assert kwargs["email"] == "user@example.com"
        assert kwargs["phone_number"] == "+11234567890"
        assert kwargs["display_name"] == "John Doe"
        assert kwargs["disabled"] is False


class TestAuthUsersCommand:
    """Test the auth_users management command end to end."""

    def test_smoke_test_flow_reports_uid_at_every_step(self, fake_auth):
        out = StringIO()

        call_command("auth_users", "smoke-test", "--uid", "some-uid", stdout=out)

        output = out.getvalue()
        assert "Successfully created new user: some-uid" in output
        assert "Successfully fetched user data: some-uid" in output
        assert "Successfully fetched user data: user@example.com" in output
        assert "Successfully fetched user data: +11234567890" in output
        assert "Successfully updated user: some-uid" in output
        assert "Successfully deleted user: some-uid" in output
        assert output.rstrip().endswith("Done!")
        assert fake_auth.users == {}

    def test_update_changes_display_name(self, fake_auth):
        fake_auth.create_user(uid="u1", display_name="John Doe")

        call_command("auth_users", "update", "u1", stdout=StringIO())

        assert fake_auth.users["u1"].display_name == "Jane Doe"
        assert fake_auth.users["u1"].disabled is True

    def test_failed_step_prints_error_and_continues(self, fake_auth):
        out, err = StringIO(), StringIO()

        call_command("auth_users", "get", "nobody", stdout=out, stderr=err)

        assert "No user record found" in err.getvalue()
        assert out.getvalue() == ""

    def test_invalid_credentials_exit_with_status_1(self):
        with patch(
            "quickstart.management.commands.auth_users.get_firebase_app",
            side_effect=CredentialError("service-account.json not found"),
        ):
            with pytest.raises(CommandError) as exc_info:
                call_command("auth_users", "get", "u1")

        assert exc_info.value.returncode == 1
        assert "invalid service account credentials" in str(exc_info.value)
