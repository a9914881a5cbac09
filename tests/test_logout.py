"""Tests for session termination."""

import pytest

PASSWORD = "secret123"


def login(client, email="jane@example.com", path="/api/login") -> str:
    response = client.post(path, json={"email": email, "password": PASSWORD})
    assert response.status_code == 200
    return response.json()["data"]["token"]


class TestLogout:
    def test_revokes_every_token_of_the_caller(
        self, client, make_account, token_count, auth_headers
    ):
        account_id = make_account()
        first = login(client)
        login(client)
        assert token_count(account_id) == 2

        response = client.post("/api/logout", headers=auth_headers(first))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] is True
        assert body["message"] == "logged out successfully"
        assert token_count(account_id) == 0

    def test_token_is_unusable_after_logout(self, client, make_account, auth_headers):
        make_account()
        token = login(client)
        assert client.get("/api/users/me", headers=auth_headers(token)).status_code == 200

        client.post("/api/logout", headers=auth_headers(token))

        assert client.get("/api/users/me", headers=auth_headers(token)).status_code == 401

    def test_other_accounts_keep_their_tokens(
        self, client, make_account, token_count, auth_headers
    ):
        make_account(email="jane@example.com")
        other_id = make_account(email="john@example.com", name="John Smith")
        token = login(client, "jane@example.com")
        login(client, "john@example.com")

        client.post("/api/logout", headers=auth_headers(token))

        assert token_count(other_id) == 1

    @pytest.mark.parametrize("path", ["/api/logout", "/api/manager/logout"])
    def test_without_token_is_no_active_session(self, client, path):
        response = client.post(path)

        assert response.status_code == 401
        body = response.json()
        assert body["status"] is False
        assert body["message"] == "user not found"

    def test_unknown_token_is_no_active_session(self, client, auth_headers):
        response = client.post("/api/logout", headers=auth_headers("not-a-real-token"))

        assert response.status_code == 401


class TestManagerLogout:
    def test_revokes_every_token(self, client, make_account, token_count, auth_headers):
        account_id = make_account(email="boss@example.com", roles=("Manager",))
        token = login(client, "boss@example.com", path="/api/manager/login")

        response = client.post("/api/manager/logout", headers=auth_headers(token))

        assert response.status_code == 200
        assert token_count(account_id) == 0
