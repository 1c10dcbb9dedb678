"""
Account Deletion Relay Tests
============================
"""

from unittest.mock import Mock, call

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from main import app
from account_service import (
    ConfigurationError, SupabaseClient, SupabaseError,
    extract_bearer_token, get_supabase_client, resolve_user_id,
)


TOKEN = jwt.encode({"sub": "user-123", "role": "authenticated"}, "not-the-real-secret", algorithm="HS256")


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def fake_response(status_code=200, body=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = ""
    response.json.return_value = body
    return response


class TestResolveUser:

    def test_bearer_parsing(self):
        assert extract_bearer_token("Bearer abc") == "abc"
        assert extract_bearer_token("bearer  abc ") == "abc"
        assert extract_bearer_token("Basic abc") is None
        assert extract_bearer_token(None) is None

    def test_session_lookup(self):
        supabase = Mock()
        supabase.get_user_id.return_value = "user-from-session"
        assert resolve_user_id(supabase, TOKEN) == "user-from-session"

    def test_jwt_fallback(self):
        supabase = Mock()
        supabase.get_user_id.side_effect = SupabaseError("401")
        assert resolve_user_id(supabase, TOKEN) == "user-123"

    def test_garbage_token(self):
        supabase = Mock()
        supabase.get_user_id.side_effect = SupabaseError("401")
        assert resolve_user_id(supabase, "not-a-jwt") is None


class TestSupabaseClient:

    def test_get_user_id(self):
        session = Mock()
        session.get.return_value = fake_response(body={"id": "user-1"})
        supabase = SupabaseClient("https://proj.supabase.co/", "anon", session=session)

        assert supabase.get_user_id(TOKEN) == "user-1"
        args, kwargs = session.get.call_args
        assert args[0] == "https://proj.supabase.co/auth/v1/user"
        assert kwargs["headers"]["Authorization"] == f"Bearer {TOKEN}"
        assert kwargs["headers"]["apikey"] == "anon"

    def test_get_user_id_rejected(self):
        session = Mock()
        session.get.return_value = fake_response(status_code=401)
        with pytest.raises(SupabaseError):
            SupabaseClient("https://proj.supabase.co", "anon", session=session).get_user_id(TOKEN)

    def test_delete_rows_filters_by_user(self):
        session = Mock()
        session.delete.return_value = fake_response(status_code=204)
        SupabaseClient("https://proj.supabase.co", "anon", session=session).delete_rows(TOKEN, "run_records", "u1")

        args, kwargs = session.delete.call_args
        assert args[0] == "https://proj.supabase.co/rest/v1/run_records"
        assert kwargs["params"] == {"user_id": "eq.u1"}

    def test_delete_auth_user_needs_service_key(self):
        with pytest.raises(ConfigurationError):
            SupabaseClient("https://proj.supabase.co", "anon", session=Mock()).delete_auth_user("u1")

    def test_delete_auth_user(self):
        session = Mock()
        session.delete.return_value = fake_response()
        SupabaseClient("https://proj.supabase.co", "anon", "service", session=session).delete_auth_user("u1")

        args, kwargs = session.delete.call_args
        assert args[0] == "https://proj.supabase.co/auth/v1/admin/users/u1"
        assert kwargs["headers"]["Authorization"] == "Bearer service"


class TestDeleteAccountEndpoint:

    def use(self, supabase):
        app.dependency_overrides[get_supabase_client] = lambda: supabase

    def test_missing_header_is_401(self, client):
        supabase = Mock()
        self.use(supabase)

        response = client.post("/delete-account")

        assert response.status_code == 401
        assert response.json()["success"] is False
        supabase.get_user_id.assert_not_called()

    def test_deletes_records_then_identity(self, client):
        supabase = Mock()
        supabase.get_user_id.return_value = "user-1"
        self.use(supabase)

        response = client.post("/delete-account", headers={"Authorization": f"Bearer {TOKEN}"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert supabase.mock_calls == [
            call.get_user_id(TOKEN),
            call.delete_rows(TOKEN, "run_records", "user-1"),
            call.delete_rows(TOKEN, "user_achievements", "user-1"),
            call.delete_auth_user("user-1"),
        ]

    def test_unresolvable_user_is_401(self, client):
        supabase = Mock()
        supabase.get_user_id.side_effect = SupabaseError("401")
        self.use(supabase)

        response = client.post("/delete-account", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        supabase.delete_rows.assert_not_called()

    def test_missing_service_key_is_500(self, client):
        supabase = Mock()
        supabase.get_user_id.return_value = "user-1"
        supabase.delete_auth_user.side_effect = ConfigurationError("SUPABASE_SERVICE_ROLE_KEY not configured")
        self.use(supabase)

        response = client.post("/delete-account", headers={"Authorization": f"Bearer {TOKEN}"})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Server configuration error"}

    def test_record_delete_failure_keeps_identity(self, client):
        supabase = Mock()
        supabase.get_user_id.return_value = "user-1"
        supabase.delete_rows.side_effect = SupabaseError("Deleting run_records failed: 403")
        self.use(supabase)

        response = client.post("/delete-account", headers={"Authorization": f"Bearer {TOKEN}"})

        assert response.status_code == 500
        assert "run_records" in response.json()["error"]
        supabase.delete_auth_user.assert_not_called()
