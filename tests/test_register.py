"""Tests for credential registration and role assignment."""

import pytest

from ticketing_auth.models.account import Account
from ticketing_auth.models.role import AccountRole, Role
from ticketing_auth.models.token import SessionToken
from ticketing_auth.services.notification_service import REGISTERED


def registration(**overrides):
    payload = {
        "name": "Jane Doe",
        "email": "jane@x.com",
        "password": "secret123",
        "password_confirmation": "secret123",
        "phone_no": "0771234567",
        "verification_method": "sms",
    }
    payload.update(overrides)
    return payload


def role_names(fetch, account_id) -> list[str]:
    role_ids = [row.role_id for row in fetch(AccountRole, AccountRole.account_id == account_id)]
    return [role.name for role in fetch(Role, Role.id.in_(role_ids))]


class TestRegister:
    def test_jane_doe_gets_user_role_split_name_and_token(self, client, fetch):
        response = client.post("/api/auth/register", json=registration())

        assert response.status_code == 201
        body = response.json()
        assert body["code"] == 201
        data = body["data"]
        assert data["role"] == "User"
        assert data["first_name"] == "Jane"
        assert data["last_name"] == "Doe"
        assert data["phone_no"] == "0771234567"
        assert data["verification_method"] == "sms"
        assert data["verified"] is False
        assert data["token"]

        (account,) = fetch(Account, Account.email == "jane@x.com")
        assert account.password_hash and account.password_hash != "secret123"
        assert role_names(fetch, account.id) == ["User"]
        assert len(fetch(SessionToken, SessionToken.account_id == account.id)) == 1

    def test_registered_event_is_emitted(self, client, events):
        client.post("/api/auth/register", json=registration())

        assert events == [(REGISTERED, "jane@x.com")]

    def test_numeric_phone_is_normalized(self, client):
        response = client.post("/api/auth/register", json=registration(phone_no=771234567))

        # 9 digits once the leading zero is lost
        assert response.status_code == 422
        assert "phone_no" in response.json()["errors"]

        response = client.post("/api/auth/register", json=registration(phone_no=9771234567))
        assert response.status_code == 201
        assert response.json()["data"]["phone_no"] == "9771234567"

    def test_role_is_ignored_when_flag_is_off(self, client, fetch):
        response = client.post("/api/auth/register", json=registration(role="Admin"))

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "User"

    def test_supplied_role_is_used_when_flag_is_on(self, client, settings):
        settings.ALLOW_ROLE_ON_REGISTER = True

        response = client.post("/api/auth/register", json=registration(role="Manager"))

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "Manager"

    def test_unknown_role_falls_back_to_user_when_flag_is_on(self, client, settings, fetch):
        settings.ALLOW_ROLE_ON_REGISTER = True

        response = client.post("/api/auth/register", json=registration(role="Superhero"))

        assert response.status_code == 201
        assert response.json()["data"]["role"] == "User"
        (account,) = fetch(Account, Account.email == "jane@x.com")
        assert role_names(fetch, account.id) == ["User"]

    def test_duplicate_email_and_phone_reported_per_field(self, client, make_account, fetch):
        make_account(email="jane@x.com", phone_no="0771234567")

        response = client.post("/api/auth/register", json=registration())

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "validation failed"
        assert body["errors"] == {
            "email": ["The email has already been taken."],
            "phone_no": ["The phone no has already been taken."],
        }
        assert len(fetch(Account)) == 1

    def test_nothing_written_when_validation_fails(self, client, fetch, events):
        response = client.post(
            "/api/auth/register",
            json=registration(password_confirmation="different1"),
        )

        assert response.status_code == 422
        assert "password_confirmation" in response.json()["errors"]
        assert fetch(Account) == []
        assert events == []

    @pytest.mark.parametrize(
        "overrides, field",
        [
            ({"name": ""}, "name"),
            ({"name": "x" * 256}, "name"),
            ({"email": "jane"}, "email"),
            ({"password": "short", "password_confirmation": "short"}, "password"),
            ({"phone_no": "07712"}, "phone_no"),
            ({"phone_no": "077123456a"}, "phone_no"),
            ({"verification_method": " "}, "verification_method"),
        ],
    )
    def test_field_validation(self, client, overrides, field):
        response = client.post("/api/auth/register", json=registration(**overrides))

        assert response.status_code == 422
        assert field in response.json()["errors"]

    def test_missing_fields_are_reported(self, client):
        response = client.post("/api/auth/register", json={"email": "jane@x.com"})

        assert response.status_code == 422
        errors = response.json()["errors"]
        for field in ("name", "password", "password_confirmation", "phone_no"):
            assert field in errors

    def test_registered_account_can_log_in(self, client):
        client.post("/api/auth/register", json=registration())

        response = client.post(
            "/api/login", json={"email": "jane@x.com", "password": "secret123"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "User"

    def test_email_is_stored_lowercase_and_matched_case_insensitively(self, client, fetch):
        response = client.post(
            "/api/auth/register", json=registration(email="Jane.Doe@X.com")
        )

        assert response.status_code == 201
        (account,) = fetch(Account)
        assert account.email == "jane.doe@x.com"

        login = client.post(
            "/api/login", json={"email": "JANE.DOE@x.com", "password": "secret123"}
        )
        assert login.status_code == 200

        again = client.post(
            "/api/auth/register",
            json=registration(email="jane.doe@x.com", phone_no="0779999999"),
        )
        assert again.status_code == 422
        assert again.json()["errors"] == {"email": ["The email has already been taken."]}
        assert len(fetch(Account)) == 1
