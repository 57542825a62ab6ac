"""Remote project store backed by the Supabase REST (PostgREST) API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

import requests

from .errors import RemoteFetchError, RemotePersistError
from .models import Project, VirtualFile, language_for_path

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"
FILES_TABLE = "project_files"


class RemoteStore(Protocol):
    """Operations the editor needs from the durable project store."""

    def get_project(self, project_id: str) -> Project: ...

    def insert_project(
        self,
        user_id: Optional[str],
        name: str,
        status: str,
        description: str,
        settings: Dict[str, Any],
    ) -> Project: ...

    def list_files(self, project_id: str) -> List[VirtualFile]: ...

    def update_file_content(self, file_id: str, content: str) -> None: ...

    def insert_files(self, project_id: str, files: Iterable[Tuple[str, str]]) -> List[VirtualFile]: ...


class SupabaseStore:
    """``RemoteStore`` over the ``/rest/v1`` endpoints of a Supabase project."""

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: Optional[str] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 15.0,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        # Asked on every request so a refreshed session is picked up.
        self.token_provider = token_provider
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def _endpoint(self, table: str) -> str:
        return f"{self.url}/rest/v1/{table}"

    def _token(self) -> Optional[str]:
        if self.token_provider is not None:
            return self.token_provider()
        return self.access_token

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self._token() or self.api_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def _request(
        self,
        method: str,
        table: str,
        error_cls: type,
        *,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = self.http.request(
                method,
                self._endpoint(table),
                params=params,
                json=json,
                headers=headers or self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, table, exc)
            raise error_cls(f"{table}: {exc}") from exc
        if response.status_code >= 400:
            message = response_error_message(response)
            logger.error("%s %s returned %s: %s", method, table, response.status_code, message)
            raise error_cls(f"{table}: {message}")
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise error_cls(f"{table}: invalid JSON response") from exc

    # ------------------------------------------------------------ projects --
    def get_project(self, project_id: str) -> Project:
        rows = self._request(
            "GET",
            PROJECTS_TABLE,
            RemoteFetchError,
            params={"select": "*", "id": f"eq.{project_id}"},
        )
        if not rows:
            raise RemoteFetchError(f"Project {project_id} not found")
        return Project.from_dict(rows[0])

    def insert_project(
        self,
        user_id: Optional[str],
        name: str,
        status: str,
        description: str,
        settings: Dict[str, Any],
    ) -> Project:
        payload = {
            "user_id": user_id,
            "name": name,
            "status": status,
            "description": description,
            "settings": settings,
        }
        rows = self._request(
            "POST",
            PROJECTS_TABLE,
            RemotePersistError,
            params={"select": "*"},
            json=payload,
            headers=self._headers(Prefer="return=representation"),
        )
        if not rows:
            raise RemotePersistError("Project insert returned no row")
        return Project.from_dict(rows[0])

    # --------------------------------------------------------------- files --
    def list_files(self, project_id: str) -> List[VirtualFile]:
        rows = self._request(
            "GET",
            FILES_TABLE,
            RemoteFetchError,
            params={"select": "*", "project_id": f"eq.{project_id}", "order": "path.asc"},
        )
        return [VirtualFile.from_dict(row) for row in rows or []]

    def update_file_content(self, file_id: str, content: str) -> None:
        self._request(
            "PATCH",
            FILES_TABLE,
            RemotePersistError,
            params={"id": f"eq.{file_id}"},
            json={"content": content},
        )

    def insert_files(self, project_id: str, files: Iterable[Tuple[str, str]]) -> List[VirtualFile]:
        payload = [
            {
                "project_id": project_id,
                "path": path,
                "content": content,
                "language": language_for_path(path),
            }
            for path, content in files
        ]
        if not payload:
            return []
        rows = self._request(
            "POST",
            FILES_TABLE,
            RemotePersistError,
            params={"select": "*"},
            json=payload,
            headers=self._headers(Prefer="return=representation"),
        )
        return [VirtualFile.from_dict(row) for row in rows or []]


def response_error_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("message", "msg", "error_description", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"HTTP {response.status_code}"
