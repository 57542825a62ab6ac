"""Runtime state of one open project in the editor."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence
from urllib.parse import parse_qs, urlparse

from .autosave import SAVE_DELAY_MS, AutosaveScheduler, PersistFn, SaveStatus, TimerFactory, store_persist
from .compositor import PreviewCompositor, PreviewResource
from .errors import RemoteFetchError, Result
from .file_store import FileStore
from .models import Project, VirtualFile
from .projects import preview_host
from .remote import RemoteStore

logger = logging.getLogger(__name__)


class EditorSession:
    """Owns the file store, autosave scheduler and preview of one project.

    ``close()`` cancels armed save timers and releases the preview resource;
    saves already in flight still finish but no longer touch the session.
    """

    def __init__(
        self,
        project_id: str,
        store: RemoteStore,
        timer_factory: TimerFactory,
        persist: Optional[PersistFn] = None,
        resource_factory: Optional[Callable[[str], PreviewResource]] = None,
        delay_ms: int = SAVE_DELAY_MS,
        site_domain: str = "webforge.app",
        on_status: Optional[Callable[[str, SaveStatus], None]] = None,
        on_preview: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str, Exception], None]] = None,
    ) -> None:
        self.project_id = project_id
        self.store = store
        self.site_domain = site_domain
        self.project: Optional[Project] = None
        self.file_store = FileStore(store)
        self.compositor = PreviewCompositor(resource_factory)
        self.on_preview = on_preview
        self.scheduler = AutosaveScheduler(
            persist if persist is not None else store_persist(store),
            self.file_store.content_of,
            timer_factory,
            delay_ms=delay_ms,
            on_status=on_status,
            on_saved=self._on_saved,
            on_error=on_error,
        )
        self.closed = False

    # ---------------------------------------------------------- accessors --
    @property
    def files(self) -> List[VirtualFile]:
        return self.file_store.files

    @property
    def current(self) -> Optional[VirtualFile]:
        return self.file_store.active

    @property
    def preview_host(self) -> str:
        name = self.project.name if self.project else self.project_id
        return preview_host(name, self.site_domain)

    def status_of(self, vfile: VirtualFile) -> SaveStatus:
        return self.scheduler.status(vfile.id)

    # ---------------------------------------------------------- lifecycle --
    def open(self) -> Result["EditorSession"]:
        """Load metadata and files.

        A metadata failure is reported but files are still loaded; a file
        load failure leaves the previously loaded files in place.
        """

        error: Optional[Exception] = None
        try:
            self.project = self.store.get_project(self.project_id)
        except RemoteFetchError as exc:
            logger.error("Could not load project %s: %s", self.project_id, exc)
            error = exc

        try:
            self.file_store.load(self.project_id)
        except RemoteFetchError as exc:
            return Result(data=self, error=error or exc)

        self.file_store.set_active(self.file_store.select_initial())
        return Result(data=self, error=error)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.scheduler.close()
        self.compositor.close()

    # ------------------------------------------------------------ editing --
    def select(self, vfile: VirtualFile) -> None:
        if self.closed:
            return
        self.file_store.set_active(vfile)

    def edit(self, content: str) -> None:
        vfile = self.file_store.active
        if self.closed or vfile is None:
            return
        self.file_store.update_content(vfile, content)
        self.scheduler.notify_change(vfile.id)

    def save_now(self) -> None:
        vfile = self.file_store.active
        if vfile is not None:
            self.scheduler.save_now(vfile.id)

    # ------------------------------------------------------------ preview --
    def refresh_preview(self) -> Optional[str]:
        if self.closed:
            return None
        url = self.compositor.regenerate(self.file_store.files)
        if self.on_preview is not None:
            self.on_preview(url)
        return url

    def _on_saved(self, file_id: str) -> None:
        self.refresh_preview()


def project_id_from_args(args: Sequence[str]) -> Optional[str]:
    """Find the project id in ``--id X``, ``--id=X`` or a URL carrying ``?id=X``."""

    for index, arg in enumerate(args):
        if arg == "--id" and index + 1 < len(args):
            return args[index + 1].strip() or None
        if arg.startswith("--id="):
            return arg.split("=", 1)[1].strip() or None
        if "?" in arg:
            values = parse_qs(urlparse(arg).query).get("id")
            if values and values[0].strip():
                return values[0].strip()
    return None
