"""
Authentication state for the School Portal client.

`auth_reducer` is a pure function over `AuthState`; `AuthProvider` owns the
current state, runs the account actions against `AuthAPI` and notifies
subscribed views after every transition.

Session restoration runs in two steps: the cached user is restored at once
(phase ``restoring``), then the server is asked to confirm it. A confirmed
session moves to ``confirmed``; an authorization denial (401) clears it
(``logged_out``); any other failure keeps the cached session (``degraded``).
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

import database
from api import ApiError
from models import (
    User, action_failure, action_success,
    ROLE_INSTITUTE_ADMIN, ROLE_COLLEGE_ADMIN, ROLE_TEACHER, ROLE_STUDENT,
    ROLE_SRO, ROLE_ACCOUNTS, ROLE_IT, ROLE_EMS,
)

logger = logging.getLogger(__name__)


AUTH_ACTIONS = {
    'SET_LOADING': 'SET_LOADING',
    'LOGIN_SUCCESS': 'LOGIN_SUCCESS',
    'LOGIN_FAILURE': 'LOGIN_FAILURE',
    'LOGOUT': 'LOGOUT',
    'SET_PHASE': 'SET_PHASE',
    'SET_ERROR': 'SET_ERROR',
    'CLEAR_ERROR': 'CLEAR_ERROR',
    'UPDATE_PROFILE': 'UPDATE_PROFILE',
}

PHASE_IDLE = "idle"
PHASE_ANONYMOUS = "anonymous"
PHASE_RESTORING = "restoring"
PHASE_CONFIRMED = "confirmed"
PHASE_DEGRADED = "degraded"
PHASE_LOGGED_OUT = "logged_out"


def normalize_permissions(permissions: Optional[Iterable]) -> List[str]:
    """Reduce server permissions (names or records with a name) to a list of names."""
    names = []
    for perm in permissions or []:
        name = perm.get("name") if isinstance(perm, dict) else perm
        if name and name not in names:
            names.append(str(name))
    return names


class AuthState:
    """Immutable snapshot of the session."""
    def __init__(self, is_authenticated: bool = False, is_loading: bool = True,
                 user: Optional[User] = None, error: Optional[str] = None,
                 permissions: Optional[List[str]] = None, phase: str = PHASE_IDLE):
        self.is_authenticated = is_authenticated
        self.is_loading = is_loading
        self.user = user
        self.error = error
        self.permissions = permissions or []
        self.phase = phase

    def replace(self, **changes) -> "AuthState":
        values = dict(self.__dict__)
        values.update(changes)
        return AuthState(**values)

    def __repr__(self):
        return (f"AuthState(phase={self.phase!r}, authenticated={self.is_authenticated}, "
                f"user={self.user!r})")


def auth_reducer(state: AuthState, action: Dict[str, Any]) -> AuthState:
    """Return the state that follows `action`."""
    action_type = action.get('type')
    payload = action.get('payload')

    if action_type == AUTH_ACTIONS['SET_LOADING']:
        return state.replace(is_loading=payload)

    if action_type == AUTH_ACTIONS['LOGIN_SUCCESS']:
        return state.replace(
            is_authenticated=True,
            is_loading=False,
            user=payload['user'],
            permissions=normalize_permissions(payload.get('permissions')),
            error=None,
            phase=payload.get('phase', PHASE_CONFIRMED),
        )

    if action_type == AUTH_ACTIONS['LOGIN_FAILURE']:
        return state.replace(
            is_authenticated=False,
            is_loading=False,
            user=None,
            permissions=[],
            error=payload,
            phase=PHASE_ANONYMOUS,
        )

    if action_type == AUTH_ACTIONS['LOGOUT']:
        return AuthState(is_loading=False, phase=PHASE_LOGGED_OUT)

    if action_type == AUTH_ACTIONS['SET_PHASE']:
        return state.replace(phase=payload, is_loading=False)

    if action_type == AUTH_ACTIONS['SET_ERROR']:
        return state.replace(error=payload, is_loading=False)

    if action_type == AUTH_ACTIONS['CLEAR_ERROR']:
        return state.replace(error=None)

    if action_type == AUTH_ACTIONS['UPDATE_PROFILE']:
        if state.user is None:
            return state
        return state.replace(user=state.user.merged(payload or {}))

    return state


def is_unauthorized(error: Exception) -> bool:
    """True when the error means the token itself was rejected."""
    return getattr(error, "status", None) == 401


def _error_message(error: Exception, default: str) -> str:
    return getattr(error, "message", None) or str(error) or default


class AuthProvider:
    """Owns the session state and exposes the account actions."""

    def __init__(self, auth_api, token_store=database):
        self.auth_api = auth_api
        self.token_store = token_store
        self._state = AuthState()
        self._lock = threading.Lock()
        self._listeners: List[Callable[[AuthState], None]] = []

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------
    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def user(self) -> Optional[User]:
        return self._state.user

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def permissions(self) -> List[str]:
        return self._state.permissions

    def subscribe(self, listener: Callable[[AuthState], None]) -> Callable[[], None]:
        """Call `listener(state)` after every transition; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Dict[str, Any], expected_phase: Optional[str] = None,
                 on_commit: Optional[Callable[[], None]] = None) -> Optional[AuthState]:
        """Apply `action` and notify listeners.

        With `expected_phase` the action is dropped, and None returned, unless
        the current phase still matches. `on_commit` runs under the same lock
        just before the action is applied.
        """
        with self._lock:
            if expected_phase is not None and self._state.phase != expected_phase:
                return None
            if on_commit is not None:
                on_commit()
            self._state = auth_reducer(self._state, action)
            state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Auth listener failed")
        return state

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------
    def initialize_auth(self, background: bool = True) -> Optional[threading.Thread]:
        """Restore a cached session and confirm it with the server.

        With `background` the confirmation runs on a daemon thread, which is
        returned; otherwise it runs before this method returns.
        """
        try:
            self.dispatch({'type': AUTH_ACTIONS['SET_LOADING'], 'payload': True})

            token = self.token_store.get_access_token()
            user_data = self.token_store.get_user_data()
            logger.info("Auth initialization: has_token=%s has_user=%s role=%s",
                        bool(token), bool(user_data), (user_data or {}).get("role"))

            if not (token and user_data):
                logger.info("No cached session, user not authenticated")
                self.dispatch({'type': AUTH_ACTIONS['SET_PHASE'], 'payload': PHASE_ANONYMOUS})
                return None

            user = User.from_dict(user_data)
            self.dispatch({
                'type': AUTH_ACTIONS['LOGIN_SUCCESS'],
                'payload': {'user': user, 'permissions': user.permissions,
                            'phase': PHASE_RESTORING},
            })

            if background:
                thread = threading.Thread(target=self.verify_session,
                                          name="session-verify", daemon=True)
                thread.start()
                return thread
            self.verify_session()
        except Exception:
            logger.exception("Auth initialization error")
            self.dispatch({'type': AUTH_ACTIONS['SET_LOADING'], 'payload': False})
        return None

    def verify_session(self):
        """Confirm the restored session with the server.

        The outcome is applied only while the session is still restoring; a
        logout or new login in the meantime wins over a late answer.
        """
        try:
            response = self.auth_api.get_current_user(save=False)
            if not response.get('success'):
                raise ApiError(response.get('message') or 'Invalid session')
            data = response.get('data') or {}
            user_data = data.get('user') or data
            fresh = User.from_dict(user_data)
            applied = self.dispatch({
                'type': AUTH_ACTIONS['LOGIN_SUCCESS'],
                'payload': {'user': fresh, 'permissions': fresh.permissions,
                            'phase': PHASE_CONFIRMED},
            }, expected_phase=PHASE_RESTORING,
               on_commit=lambda: self.token_store.save_user_data(user_data))
            if applied is None:
                logger.info("Session changed during verification, ignoring result")
            else:
                logger.info("Token verification successful, using fresh user data")
        except Exception as e:
            if is_unauthorized(e):
                applied = self.dispatch({'type': AUTH_ACTIONS['LOGOUT']},
                                        expected_phase=PHASE_RESTORING,
                                        on_commit=self.token_store.clear_tokens)
                if applied is not None:
                    logger.info("Token is invalid, cleared auth state")
            else:
                logger.warning("Token verification failed (%s), keeping cached session", e)
                self.dispatch({'type': AUTH_ACTIONS['SET_PHASE'], 'payload': PHASE_DEGRADED},
                              expected_phase=PHASE_RESTORING)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _authenticate(self, call: Callable[[], Dict[str, Any]], default_error: str):
        try:
            self.dispatch({'type': AUTH_ACTIONS['SET_LOADING'], 'payload': True})
            self.dispatch({'type': AUTH_ACTIONS['CLEAR_ERROR']})

            response = call()
            if not response.get('success'):
                raise ApiError(response.get('message') or default_error)

            data = response.get('data') or {}
            if not data.get('user'):
                raise ApiError(default_error)
            user = User.from_dict(data['user'])
            logger.info("Authenticated as role %s", user.role)
            self.dispatch({
                'type': AUTH_ACTIONS['LOGIN_SUCCESS'],
                'payload': {'user': user, 'permissions': user.permissions},
            })
            return action_success(data)
        except Exception as e:
            message = _error_message(e, default_error)
            self.dispatch({'type': AUTH_ACTIONS['LOGIN_FAILURE'], 'payload': message})
            return action_failure(message)

    def login(self, credentials: Dict[str, Any]):
        return self._authenticate(lambda: self.auth_api.login(credentials), 'Login failed')

    def register(self, user_data: Dict[str, Any]):
        return self._authenticate(lambda: self.auth_api.register(user_data), 'Registration failed')

    def logout(self, logout_all: bool = False):
        try:
            if logout_all:
                self.auth_api.logout_all()
            else:
                self.auth_api.logout()
        except Exception as e:
            logger.error("Logout error: %s", e)
        finally:
            self.dispatch({'type': AUTH_ACTIONS['LOGOUT']})

    def _run(self, call: Callable[[], Dict[str, Any]], default_error: str):
        try:
            response = call()
            if response.get('success') is False:
                raise ApiError(response.get('message') or default_error)
            return action_success(response.get('data'))
        except Exception as e:
            message = _error_message(e, default_error)
            logger.warning("%s: %s", default_error, message)
            return action_failure(message)

    def update_profile(self, profile_data: Dict[str, Any]):
        result = self._run(lambda: self.auth_api.update_profile(profile_data),
                           'Profile update failed')
        if result['success']:
            self.dispatch({'type': AUTH_ACTIONS['UPDATE_PROFILE'],
                           'payload': result['data'] or {}})
        return result

    def change_password(self, password_data: Dict[str, Any]):
        return self._run(lambda: self.auth_api.change_password(password_data),
                         'Password change failed')

    def forgot_password(self, email: str):
        return self._run(lambda: self.auth_api.forgot_password(email),
                         'Password reset request failed')

    def reset_password(self, reset_data: Dict[str, Any]):
        return self._run(lambda: self.auth_api.reset_password(reset_data),
                         'Password reset failed')

    def get_sessions(self):
        return self._run(self.auth_api.get_sessions, 'Failed to get sessions')

    def revoke_session(self, session_id: str):
        return self._run(lambda: self.auth_api.revoke_session(session_id),
                         'Failed to revoke session')

    def clear_error(self):
        self.dispatch({'type': AUTH_ACTIONS['CLEAR_ERROR']})

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------
    def has_permission(self, permission: str) -> bool:
        user = self._state.user
        if user is None:
            return False
        if user.role == ROLE_INSTITUTE_ADMIN:
            return True
        return permission in self._state.permissions

    def has_role(self, role: str) -> bool:
        user = self._state.user
        return user is not None and user.role == role

    def has_any_role(self, roles: Iterable[str]) -> bool:
        user = self._state.user
        return user is not None and user.role in roles

    @property
    def is_institute_admin(self) -> bool:
        return self.has_role(ROLE_INSTITUTE_ADMIN)

    @property
    def is_college_admin(self) -> bool:
        return self.has_role(ROLE_COLLEGE_ADMIN)

    @property
    def is_teacher(self) -> bool:
        return self.has_role(ROLE_TEACHER)

    @property
    def is_student(self) -> bool:
        return self.has_role(ROLE_STUDENT)

    @property
    def is_sro(self) -> bool:
        return self.has_role(ROLE_SRO)

    @property
    def is_accounts(self) -> bool:
        return self.has_role(ROLE_ACCOUNTS)

    @property
    def is_it(self) -> bool:
        return self.has_role(ROLE_IT)

    @property
    def is_ems(self) -> bool:
        return self.has_role(ROLE_EMS)
