"""Client for the hosted identity provider (Supabase GoTrue API).

Every public method returns a :class:`Result` instead of raising, so callers
can show the error next to the form that triggered it.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import requests

from .errors import AuthError, Result
from .remote import response_error_message

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
USER_UPDATED = "USER_UPDATED"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthListener = Callable[[str, Optional["AuthSession"]], None]


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    user_id: str
    email: str = ""
    expires_at: float = 0.0

    def expired(self, now: Optional[float] = None) -> bool:
        if not self.expires_at:
            return False
        return (now if now is not None else time.time()) >= self.expires_at

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "AuthSession":
        return cls(
            access_token=data.get("access_token", ""),
            refresh_token=data.get("refresh_token", ""),
            user_id=data.get("user_id", ""),
            email=data.get("email", ""),
            expires_at=float(data.get("expires_at") or 0.0),
        )

    @classmethod
    def from_token_response(cls, payload: dict, now: Optional[float] = None) -> "AuthSession":
        user = payload.get("user") or {}
        expires_at = payload.get("expires_at")
        if not expires_at and payload.get("expires_in"):
            expires_at = (now if now is not None else time.time()) + float(payload["expires_in"])
        return cls(
            access_token=payload.get("access_token", ""),
            refresh_token=payload.get("refresh_token", ""),
            user_id=str(user.get("id", "")),
            email=user.get("email", "") or "",
            expires_at=float(expires_at or 0.0),
        )


class SessionStore:
    """Persists the signed-in session between application runs."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> Optional[AuthSession]:
        if not self.path.exists():
            return None
        try:
            return AuthSession.from_dict(json.loads(self.path.read_text(encoding="utf-8")))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None

    def save(self, session: AuthSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(session.to_dict(), indent=2), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class AuthClient:
    def __init__(
        self,
        url: str,
        api_key: str,
        sessions: SessionStore,
        site_url: str = "",
        http: Optional[requests.Session] = None,
        timeout: float = 15.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.sessions = sessions
        self.site_url = site_url.rstrip("/")
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout
        self.clock = clock
        # Save workers may ask for the session at the same time.
        self._session_lock = threading.Lock()
        self._listeners: List[AuthListener] = []

    # --------------------------------------------------------------- http --
    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
            "Content-Type": "application/json",
        }

    def _call(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, str]] = None,
        json_body: Any = None,
        access_token: Optional[str] = None,
    ) -> Any:
        try:
            response = self.http.request(
                method,
                f"{self.url}{path}",
                params=params,
                json=json_body,
                headers=self._headers(access_token),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthError(str(exc)) from exc
        if response.status_code >= 400:
            raise AuthError(response_error_message(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise AuthError("invalid JSON response") from exc

    def _guard(self, label: str, func: Callable[[], Any]) -> Result[Any]:
        try:
            return Result(data=func())
        except AuthError as exc:
            logger.error("%s failed: %s", label, exc)
            return Result(error=exc)

    # ---------------------------------------------------------- listeners --
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def _store_session(self, payload: dict, event: str) -> Optional[AuthSession]:
        if not payload.get("access_token"):
            # Sign-up with e-mail confirmation returns the user without a session.
            return None
        session = AuthSession.from_token_response(payload, now=self.clock())
        self.sessions.save(session)
        self._emit(event, session)
        return session

    # -------------------------------------------------------------- flows --
    def sign_in_with_password(self, email: str, password: str) -> Result[Optional[AuthSession]]:
        def run() -> Optional[AuthSession]:
            payload = self._call(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "password"},
                json_body={"email": email, "password": password},
            )
            return self._store_session(payload, SIGNED_IN)

        return self._guard("sign in", run)

    def sign_up(
        self, email: str, password: str, metadata: Optional[Dict[str, Any]] = None
    ) -> Result[Dict[str, Any]]:
        def run() -> Dict[str, Any]:
            payload = self._call(
                "POST",
                "/auth/v1/signup",
                json_body={"email": email, "password": password, "data": metadata or {}},
            )
            session = self._store_session(payload, SIGNED_IN)
            user = payload.get("user") or payload
            return {"user": user, "session": session}

        return self._guard("sign up", run)

    def sign_in_with_oauth(self, provider: str) -> Result[Dict[str, str]]:
        """Return the provider authorize URL; the caller opens it in a browser."""

        if not provider:
            return Result(error=AuthError("An OAuth provider is required"))
        query = urlencode({"provider": provider, "redirect_to": f"{self.site_url}/dashboard.html"})
        return Result(data={"provider": provider, "url": f"{self.url}/auth/v1/authorize?{query}"})

    def sign_out(self) -> Result[str]:
        session = self.sessions.load()
        if session is not None:
            try:
                self._call("POST", "/auth/v1/logout", access_token=session.access_token)
            except AuthError as exc:
                logger.error("sign out failed: %s", exc)
                return Result(error=exc)
        self.sessions.clear()
        self._emit(SIGNED_OUT, None)
        return Result(data=f"{self.site_url}/index.html")

    def reset_password(self, email: str) -> Result[Dict[str, Any]]:
        return self._guard(
            "password reset",
            lambda: self._call(
                "POST",
                "/auth/v1/recover",
                params={"redirect_to": f"{self.site_url}/reset-password.html"},
                json_body={"email": email},
            ),
        )

    def update_password(self, new_password: str) -> Result[Dict[str, Any]]:
        session = self.sessions.load()
        if session is None:
            return Result(error=AuthError("Not signed in"))

        def run() -> Dict[str, Any]:
            user = self._call(
                "PUT", "/auth/v1/user", json_body={"password": new_password}, access_token=session.access_token
            )
            self._emit(USER_UPDATED, session)
            return user

        return self._guard("password update", run)

    def get_session(self) -> Result[Optional[AuthSession]]:
        """Return the stored session, refreshing it first when it has expired."""

        with self._session_lock:
            return self._current_session()

    def _current_session(self) -> Result[Optional[AuthSession]]:
        session = self.sessions.load()
        if session is None or not session.expired(self.clock()):
            return Result(data=session)
        if not session.refresh_token:
            self.sessions.clear()
            return Result(data=None)

        def run() -> Optional[AuthSession]:
            payload = self._call(
                "POST",
                "/auth/v1/token",
                params={"grant_type": "refresh_token"},
                json_body={"refresh_token": session.refresh_token},
            )
            return self._store_session(payload, TOKEN_REFRESHED)

        result = self._guard("session refresh", run)
        if not result.ok:
            self.sessions.clear()
        return result

    def access_token(self) -> Optional[str]:
        session = self.get_session().data
        return session.access_token if session is not None else None

    def require_session(self) -> Optional[AuthSession]:
        session = self.get_session().data
        if session is None:
            logger.info("No stored session, sign-in required")
        return session

    def get_user_profile(self, user_id: str) -> Result[Dict[str, Any]]:
        session = self.sessions.load()

        def run() -> Dict[str, Any]:
            rows = self._call(
                "GET",
                "/rest/v1/profiles",
                params={"select": "*", "id": f"eq.{user_id}"},
                access_token=session.access_token if session else None,
            )
            if not rows:
                raise AuthError(f"No profile for user {user_id}")
            return rows[0]

        return self._guard("profile fetch", run)
