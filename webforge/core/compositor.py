"""Compose a project's files into a single previewable document."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol

from .models import VirtualFile
from .templates import render_placeholder

logger = logging.getLogger(__name__)

HTML_PATH = "index.html"
STYLE_PATH = "style.css"
SCRIPT_PATH = "script.js"

# Only these two literal file names are recognised.
_STYLE_LINK_RE = re.compile(r"<link[^>]*href=[\"']style\.css[\"'][^>]*>", re.IGNORECASE)
_SCRIPT_SRC_RE = re.compile(r"<script[^>]*src=[\"']script\.js[\"'][^>]*></script>", re.IGNORECASE)

FALLBACK_DOCUMENT = render_placeholder()


def _inject_before(html: str, closing_tag: str, block: str) -> str:
    if closing_tag in html:
        return html.replace(closing_tag, block + closing_tag, 1)
    return html + block


def compose_document(files: Iterable[VirtualFile]) -> str:
    """Inline ``style.css`` and ``script.js`` into ``index.html``.

    Returns the fixed fallback document when the project has no ``index.html``.
    Stylesheet links and script tags pointing at the inlined files are removed so
    the preview does not request them a second time.
    """

    by_path = {f.path: f for f in files}
    html_file = by_path.get(HTML_PATH)
    if html_file is None:
        return FALLBACK_DOCUMENT

    html = html_file.content
    css = by_path[STYLE_PATH].content if STYLE_PATH in by_path else ""
    js = by_path[SCRIPT_PATH].content if SCRIPT_PATH in by_path else ""

    if css:
        html = _STYLE_LINK_RE.sub("", html)
        html = _inject_before(html, "</head>", f"<style>{css}</style>")

    if js:
        html = _SCRIPT_SRC_RE.sub("", html)
        html = _inject_before(html, "</body>", f"<script>{js}</script>")

    return html


class PreviewResource(Protocol):
    url: str

    def release(self) -> None: ...


class TempPreviewResource:
    """A composed document written to its own temporary directory."""

    def __init__(self, html: str, base_dir: Optional[Path] = None) -> None:
        self.directory = Path(tempfile.mkdtemp(prefix="webforge_preview_", dir=base_dir))
        self.path = self.directory / HTML_PATH
        self.path.write_text(html, encoding="utf-8")
        self.url = self.path.as_uri()
        self.released = False

    def release(self) -> None:
        if self.released:
            return
        shutil.rmtree(self.directory, ignore_errors=True)
        self.released = True


class PreviewCompositor:
    """Owns the preview resource of one editor session."""

    def __init__(self, resource_factory: Optional[Callable[[str], PreviewResource]] = None) -> None:
        self._create = resource_factory or TempPreviewResource
        self.current: Optional[PreviewResource] = None
        self.document: Optional[str] = None

    @property
    def url(self) -> Optional[str]:
        return self.current.url if self.current is not None else None

    def regenerate(self, files: Iterable[VirtualFile]) -> str:
        document = compose_document(files)
        resource = self._create(document)
        previous, self.current = self.current, resource
        self.document = document
        if previous is not None:
            previous.release()
        logger.debug("preview regenerated at %s", resource.url)
        return resource.url

    def close(self) -> None:
        if self.current is not None:
            self.current.release()
            self.current = None
