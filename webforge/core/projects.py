"""Creating new projects in the remote store."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .errors import ValidationError
from .models import DEFAULT_STATUS, Project, VirtualFile
from .remote import RemoteStore

logger = logging.getLogger(__name__)

TOTAL_STEPS = 5


@dataclass
class ProjectRequest:
    """Choices collected before a project is created."""

    type: str = ""
    style: str = ""
    features: List[str] = field(default_factory=list)
    name: str = ""
    description: str = ""
    # index is always generated
    pages: List[str] = field(default_factory=lambda: ["index"])

    def toggle_feature(self, feature: str) -> None:
        if feature in self.features:
            self.features.remove(feature)
        else:
            self.features.append(feature)

    def toggle_page(self, page: str) -> None:
        if page == "index":
            return
        if page in self.pages:
            self.pages.remove(page)
        else:
            self.pages.append(page)

    def validate_step(self, step: int) -> None:
        if step == 1 and not self.type:
            raise ValidationError("type", "Please select a project type.")
        if step == 2 and not self.style:
            raise ValidationError("style", "Please select a visual style.")
        if step == 4 and not self.name.strip():
            raise ValidationError("name", "The project name is required.")

    def validate(self) -> None:
        for step in range(1, TOTAL_STEPS + 1):
            self.validate_step(step)

    def settings(self) -> dict:
        return {
            "type": self.type,
            "style": self.style,
            "features": list(self.features),
            "pages": list(self.pages),
        }


def site_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", name.lower())


def preview_host(name: str, domain: str = "webforge.app") -> str:
    return f"{site_slug(name)}.{domain}"


def create_project(
    store: RemoteStore,
    request: ProjectRequest,
    files: Iterable[Tuple[str, str]],
    user_id: Optional[str] = None,
) -> Tuple[Project, List[VirtualFile]]:
    """Validate ``request``, insert the project row, then its files.

    Raises ``ValidationError`` before anything is written, or
    ``RemotePersistError`` if either insert fails.
    """

    request.validate()
    project = store.insert_project(
        user_id=user_id,
        name=request.name.strip(),
        status=DEFAULT_STATUS,
        description=request.description,
        settings=request.settings(),
    )
    created = store.insert_files(project.id, files)
    logger.info("Created project %s with %d files", project.id, len(created))
    return project, created
