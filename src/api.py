"""
HTTP access to the institute backend.

`ApiClient` sends JSON requests with the cached bearer token and turns every
failure into an `ApiError`. `AuthAPI` wraps the authentication endpoints and
keeps the local session cache in step with them.
"""

import logging
from typing import Any, Callable, Dict, Optional

import requests

import config
import database

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Request failure with the HTTP status when the server answered."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


class ApiClient:
    """Thin JSON client over a shared `requests.Session`."""

    def __init__(self, base_url: str = config.API_BASE_URL, token_store=database,
                 timeout: float = config.REQUEST_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth:
            token = self.token_store.get_access_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, endpoint: str, data: Optional[dict] = None,
                params: Optional[dict] = None, auth: bool = True) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body."""
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s", method, endpoint)
        try:
            response = self.session.request(
                method, url, json=data, params=params,
                headers=self._headers(auth), timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"Network error: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            message = None
            if isinstance(payload, dict):
                message = payload.get("message") or payload.get("error")
            raise ApiError(
                message or response.reason or f"Request failed with status {response.status_code}",
                status=response.status_code,
                payload=payload,
            )

        if not isinstance(payload, dict):
            raise ApiError("Invalid response from server", status=response.status_code)
        return payload

    def get(self, endpoint: str, params: Optional[dict] = None) -> Dict[str, Any]:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, data: Optional[dict] = None) -> Dict[str, Any]:
        return self.request("POST", endpoint, data=data)


class AuthAPI:
    """Authentication endpoints."""

    def __init__(self, client: ApiClient, token_store=database):
        self.client = client
        self.token_store = token_store

    def _store_session(self, data: Dict[str, Any]):
        token = data.get("accessToken") or data.get("token")
        if token:
            self.token_store.save_tokens(token, data.get("refreshToken"))
        user = data.get("user")
        if user:
            self.token_store.save_user_data(user)

    def login(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        response = self.client.request("POST", "/api/auth/login", credentials, auth=False)
        if response.get("success"):
            self._store_session(response.get("data") or {})
        return response

    def register(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        response = self.client.request("POST", "/api/auth/register", user_data, auth=False)
        if response.get("success"):
            self._store_session(response.get("data") or {})
        return response

    def logout(self) -> Dict[str, Any]:
        try:
            return self.client.post("/api/auth/logout",
                                    {"refreshToken": self.token_store.get_refresh_token()})
        finally:
            self.token_store.clear_tokens()

    def logout_all(self) -> Dict[str, Any]:
        try:
            return self.client.post("/api/auth/logout-all")
        finally:
            self.token_store.clear_tokens()

    def get_current_user(self, save: bool = True) -> Dict[str, Any]:
        """Fetch the signed-in user; with `save` the cached record is refreshed too."""
        response = self.client.get("/api/auth/me")
        if save and response.get("success"):
            data = response.get("data") or {}
            self.token_store.save_user_data(data.get("user") or data)
        return response

    def update_profile(self, profile_data: Dict[str, Any]) -> Dict[str, Any]:
        response = self.client.request("PUT", "/api/auth/profile", profile_data)
        if response.get("success") and isinstance(response.get("data"), dict):
            cached = self.token_store.get_user_data() or {}
            cached.update(response["data"])
            self.token_store.save_user_data(cached)
        return response

    def change_password(self, password_data: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.request("PUT", "/api/auth/change-password", password_data)

    def forgot_password(self, email: str) -> Dict[str, Any]:
        return self.client.request("POST", "/api/auth/forgot-password", {"email": email}, auth=False)

    def reset_password(self, reset_data: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.request("POST", "/api/auth/reset-password", reset_data, auth=False)

    def get_sessions(self) -> Dict[str, Any]:
        return self.client.get("/api/auth/sessions")

    def revoke_session(self, session_id: str) -> Dict[str, Any]:
        return self.client.request("DELETE", f"/api/auth/sessions/{session_id}")


def make_call_api(client: ApiClient, show_snackbar: Callable) -> Callable:
    """Return a `call_api(endpoint, method, data)` that reports failures in a snackbar.

    The error is re-raised after the snackbar so callers can still log it.
    """
    def call_api(endpoint: str, method: str = "GET", data: Optional[dict] = None):
        try:
            return client.request(method, endpoint, data)
        except ApiError as e:
            show_snackbar(e.message, True)
            raise

    return call_api
