#!/usr/bin/env python3
"""
Tests for the HTTP client, the auth endpoints wrapper and the snackbar-reporting call_api.
"""

import os
import sys
import unittest
from unittest.mock import Mock

import requests

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from api import ApiClient, ApiError, AuthAPI, make_call_api


def make_response(status_code=200, payload=None, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    if payload is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = payload
    return response


class TestApiClient(unittest.TestCase):
    """Request building and error mapping."""

    def setUp(self):
        self.session = Mock()
        self.store = Mock()
        self.store.get_access_token.return_value = "tok-123"
        self.client = ApiClient("http://api.test/", self.store, timeout=3, session=self.session)

    def test_returns_json_body_and_sends_bearer_token(self):
        self.session.request.return_value = make_response(200, {"success": True, "data": [1]})

        payload = self.client.request("GET", "/api/classes")

        self.assertEqual(payload, {"success": True, "data": [1]})
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ("GET", "http://api.test/api/classes"))
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer tok-123")
        self.assertEqual(kwargs["timeout"], 3)

    def test_unauthenticated_request_has_no_token(self):
        self.session.request.return_value = make_response(200, {"success": True})
        self.client.request("POST", "/api/auth/login", {"email": "a"}, auth=False)
        kwargs = self.session.request.call_args[1]
        self.assertNotIn("Authorization", kwargs["headers"])
        self.assertEqual(kwargs["json"], {"email": "a"})

    def test_http_error_raises_with_status_and_server_message(self):
        self.session.request.return_value = make_response(
            401, {"success": False, "message": "Token expired"}, reason="Unauthorized")

        with self.assertRaises(ApiError) as ctx:
            self.client.get("/api/auth/me")

        self.assertEqual(ctx.exception.status, 401)
        self.assertEqual(ctx.exception.message, "Token expired")

    def test_http_error_without_body_uses_reason(self):
        self.session.request.return_value = make_response(503, None, reason="Service Unavailable")
        with self.assertRaises(ApiError) as ctx:
            self.client.get("/api/classes")
        self.assertEqual(ctx.exception.status, 503)
        self.assertEqual(str(ctx.exception), "Service Unavailable")

    def test_transport_failure_has_no_status(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ApiError) as ctx:
            self.client.get("/api/classes")
        self.assertIsNone(ctx.exception.status)
        self.assertIn("Network error", ctx.exception.message)

    def test_undecodable_success_body_is_an_error(self):
        self.session.request.return_value = make_response(200, None)
        with self.assertRaises(ApiError):
            self.client.get("/api/classes")


class TestAuthAPI(unittest.TestCase):
    """Session cache bookkeeping around the auth endpoints."""

    def setUp(self):
        self.client = Mock()
        self.store = Mock()
        self.auth_api = AuthAPI(self.client, self.store)

    def test_login_stores_tokens_and_user(self):
        user = {"_id": "u1", "role": "Teacher"}
        self.client.request.return_value = {
            "success": True,
            "data": {"accessToken": "a", "refreshToken": "r", "user": user},
        }

        self.auth_api.login({"email": "e", "password": "p"})

        self.store.save_tokens.assert_called_once_with("a", "r")
        self.store.save_user_data.assert_called_once_with(user)

    def test_failed_login_stores_nothing(self):
        self.client.request.return_value = {"success": False, "message": "Invalid"}
        self.auth_api.login({})
        self.store.save_tokens.assert_not_called()

    def test_logout_clears_cache_even_on_error(self):
        self.client.post.side_effect = ApiError("Network error")
        with self.assertRaises(ApiError):
            self.auth_api.logout()
        self.store.clear_tokens.assert_called_once_with()

    def test_get_current_user_refreshes_cached_user(self):
        user = {"_id": "u1", "name": "Fresh"}
        self.client.get.return_value = {"success": True, "data": {"user": user}}
        self.auth_api.get_current_user()
        self.store.save_user_data.assert_called_once_with(user)

    def test_get_current_user_can_leave_cache_alone(self):
        self.client.get.return_value = {"success": True, "data": {"user": {"_id": "u1"}}}
        response = self.auth_api.get_current_user(save=False)
        self.assertTrue(response["success"])
        self.store.save_user_data.assert_not_called()

    def test_update_profile_merges_cached_user(self):
        self.store.get_user_data.return_value = {"_id": "u1", "name": "Old", "role": "IT"}
        self.client.request.return_value = {"success": True, "data": {"name": "New"}}
        self.auth_api.update_profile({"name": "New"})
        self.store.save_user_data.assert_called_once_with({"_id": "u1", "name": "New", "role": "IT"})

    def test_revoke_session_path(self):
        self.client.request.return_value = {"success": True}
        self.auth_api.revoke_session("s42")
        self.client.request.assert_called_once_with("DELETE", "/api/auth/sessions/s42")


class TestCallApi(unittest.TestCase):
    """Snackbar reporting wrapper used by the views."""

    def test_success_passes_through(self):
        client = Mock()
        client.request.return_value = {"success": True, "data": []}
        show_snackbar = Mock()
        call_api = make_call_api(client, show_snackbar)

        self.assertEqual(call_api("/api/classes"), {"success": True, "data": []})
        client.request.assert_called_once_with("GET", "/api/classes", None)
        show_snackbar.assert_not_called()

    def test_error_is_shown_and_reraised(self):
        client = Mock()
        client.request.side_effect = ApiError("Forbidden", status=403)
        show_snackbar = Mock()
        call_api = make_call_api(client, show_snackbar)

        with self.assertRaises(ApiError):
            call_api("/api/attendance/mark", "POST", {"studentId": "s1"})
        show_snackbar.assert_called_once_with("Forbidden", True)


if __name__ == '__main__':
    unittest.main()
