"""JSON file store used when no remote backend is configured."""

from __future__ import annotations

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import RemoteFetchError, RemotePersistError
from .models import Project, VirtualFile

logger = logging.getLogger(__name__)


class LocalStore:
    """``RemoteStore`` persisted as a single JSON document on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        # Save workers run on background threads.
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, List[dict]]:
        if not self.path.exists():
            return {"projects": [], "project_files": []}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        data.setdefault("projects", [])
        data.setdefault("project_files", [])
        return data

    def _write(self, data: Dict[str, List[dict]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    def _load(self, error_cls: type) -> Dict[str, List[dict]]:
        try:
            return self._read()
        except (OSError, ValueError) as exc:
            logger.error("Could not read %s: %s", self.path, exc)
            raise error_cls(f"Could not read {self.path.name}: {exc}") from exc

    def _commit(self, data: Dict[str, List[dict]]) -> None:
        try:
            self._write(data)
        except OSError as exc:
            logger.error("Could not write %s: %s", self.path, exc)
            raise RemotePersistError(f"Could not write {self.path.name}: {exc}") from exc

    # ------------------------------------------------------------ projects --
    def get_project(self, project_id: str) -> Project:
        with self._lock:
            data = self._load(RemoteFetchError)
        for row in data["projects"]:
            if row.get("id") == project_id:
                return Project.from_dict(row)
        raise RemoteFetchError(f"Project {project_id} not found")

    def insert_project(
        self,
        user_id: Optional[str],
        name: str,
        status: str,
        description: str,
        settings: Dict[str, Any],
    ) -> Project:
        project = Project(
            id=str(uuid.uuid4()),
            name=name,
            status=status,
            description=description,
            settings=dict(settings),
            user_id=user_id,
        )
        with self._lock:
            data = self._load(RemotePersistError)
            data["projects"].append(project.to_dict())
            self._commit(data)
        return project

    # --------------------------------------------------------------- files --
    def list_files(self, project_id: str) -> List[VirtualFile]:
        with self._lock:
            data = self._load(RemoteFetchError)
        rows = [row for row in data["project_files"] if row.get("project_id") == project_id]
        rows.sort(key=lambda row: row.get("path", ""))
        return [VirtualFile.from_dict(row) for row in rows]

    def update_file_content(self, file_id: str, content: str) -> None:
        with self._lock:
            data = self._load(RemotePersistError)
            for row in data["project_files"]:
                if row.get("id") == file_id:
                    row["content"] = content
                    break
            else:
                raise RemotePersistError(f"File {file_id} not found")
            self._commit(data)

    def insert_files(self, project_id: str, files: Iterable[Tuple[str, str]]) -> List[VirtualFile]:
        created = [
            VirtualFile(id=str(uuid.uuid4()), project_id=project_id, path=path, content=content)
            for path, content in files
        ]
        with self._lock:
            data = self._load(RemotePersistError)
            taken = {
                row.get("path") for row in data["project_files"] if row.get("project_id") == project_id
            }
            for vfile in created:
                if vfile.path in taken:
                    raise RemotePersistError(f"Duplicate path {vfile.path!r} in project {project_id}")
                taken.add(vfile.path)
            data["project_files"].extend(vfile.to_dict() for vfile in created)
            self._commit(data)
        return created
