"""In-memory collection of a project's editable files."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .errors import RemoteFetchError
from .models import VirtualFile
from .remote import RemoteStore

logger = logging.getLogger(__name__)

INDEX_PATH = "index.html"


def select_initial(files: Sequence[VirtualFile]) -> Optional[VirtualFile]:
    """Return ``index.html`` if present, else the first file, else ``None``."""

    for vfile in files:
        if vfile.path == INDEX_PATH:
            return vfile
    return files[0] if files else None


class FileStore:
    """Source of truth for edited content until the remote store confirms it."""

    def __init__(self, store: RemoteStore) -> None:
        self.store = store
        self.project_id: Optional[str] = None
        self.files: List[VirtualFile] = []
        self.active: Optional[VirtualFile] = None

    def load(self, project_id: str) -> List[VirtualFile]:
        try:
            files = self.store.list_files(project_id)
        except RemoteFetchError:
            logger.exception("Could not load files for project %s", project_id)
            raise
        files = sorted(files, key=lambda f: f.path)
        self.project_id = project_id
        self.files = files
        self.active = None
        return files

    def select_initial(self) -> Optional[VirtualFile]:
        return select_initial(self.files)

    def set_active(self, vfile: Optional[VirtualFile]) -> None:
        self.active = vfile

    def update_content(self, vfile: VirtualFile, content: str) -> None:
        vfile.content = content

    def get(self, file_id: str) -> Optional[VirtualFile]:
        for vfile in self.files:
            if vfile.id == file_id:
                return vfile
        return None

    def by_path(self, path: str) -> Optional[VirtualFile]:
        for vfile in self.files:
            if vfile.path == path:
                return vfile
        return None

    def content_of(self, file_id: str) -> Optional[str]:
        vfile = self.get(file_id)
        return vfile.content if vfile is not None else None
