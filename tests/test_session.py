from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from webforge.core.autosave import SAVE_DELAY_MS, SaveStatus
from webforge.core.compositor import FALLBACK_DOCUMENT, TempPreviewResource
from webforge.core.errors import RemoteFetchError
from webforge.core.session import EditorSession, project_id_from_args
from webforge.core.storage import LocalStore


def _project(tmp_path, files):
    store = LocalStore(tmp_path / "projects.json")
    project = store.insert_project(None, "My Bakery", "draft", "", {})
    store.insert_files(project.id, files)
    return store, project


def _session(store, project_id, clock, tmp_path, previews=None, statuses=None):
    return EditorSession(
        project_id,
        store,
        timer_factory=clock.timer,
        resource_factory=lambda html: TempPreviewResource(html, base_dir=tmp_path),
        on_preview=previews.append if previews is not None else None,
        on_status=(lambda fid, s: statuses.append(s)) if statuses is not None else None,
    )


def test_open_selects_index_and_renders_preview(tmp_path, clock) -> None:
    store, project = _project(
        tmp_path,
        [("style.css", "h1{color:red}"), ("index.html", "<head></head><h1>Hi</h1>")],
    )
    previews: list = []
    session = _session(store, project.id, clock, tmp_path, previews)

    result = session.open()

    assert result.ok
    assert session.current is not None and session.current.path == "index.html"
    assert session.preview_host == "my-bakery.webforge.app"
    url = session.refresh_preview()
    assert previews == [url]
    assert "<style>h1{color:red}</style></head>" in session.compositor.document


def test_edit_is_saved_after_the_delay_and_refreshes_preview(tmp_path, clock) -> None:
    store, project = _project(tmp_path, [("index.html", "<p>old</p>")])
    previews: list = []
    statuses: list = []
    session = _session(store, project.id, clock, tmp_path, previews, statuses)
    session.open()

    session.edit("<p>new</p>")
    assert store.list_files(project.id)[0].content == "<p>old</p>"
    clock.advance(SAVE_DELAY_MS)

    assert store.list_files(project.id)[0].content == "<p>new</p>"
    assert statuses == [SaveStatus.PENDING, SaveStatus.SAVING, SaveStatus.SAVED]
    assert len(previews) == 1
    assert session.compositor.document == "<p>new</p>"


def test_switching_files_keeps_the_pending_save(tmp_path, clock) -> None:
    store, project = _project(tmp_path, [("index.html", "a"), ("style.css", "b")])
    session = _session(store, project.id, clock, tmp_path)
    session.open()

    session.edit("a2")
    session.select(session.file_store.by_path("style.css"))
    session.edit("b2")
    clock.advance(SAVE_DELAY_MS)

    assert [f.content for f in store.list_files(project.id)] == ["a2", "b2"]


def test_empty_project_has_no_current_file_and_fallback_preview(tmp_path, clock) -> None:
    store, project = _project(tmp_path, [])
    session = _session(store, project.id, clock, tmp_path)

    assert session.open().ok
    assert session.current is None
    session.refresh_preview()
    assert session.compositor.document == FALLBACK_DOCUMENT
    session.edit("ignored")
    assert not session.scheduler.busy


def test_unknown_project_reports_metadata_error(tmp_path, clock) -> None:
    store, _project_row = _project(tmp_path, [("index.html", "")])
    session = _session(store, "missing", clock, tmp_path)

    result = session.open()

    assert isinstance(result.error, RemoteFetchError)
    assert session.project is None
    assert session.files == []
    assert session.preview_host == "missing.webforge.app"


def test_close_cancels_pending_save_and_releases_preview(tmp_path, clock) -> None:
    store, project = _project(tmp_path, [("index.html", "old")])
    session = _session(store, project.id, clock, tmp_path)
    session.open()
    session.refresh_preview()
    resource = session.compositor.current

    session.edit("unsaved")
    session.close()
    clock.advance(SAVE_DELAY_MS * 3)

    assert store.list_files(project.id)[0].content == "old"
    assert not resource.directory.exists()
    assert session.refresh_preview() is None


def test_project_id_from_args() -> None:
    assert project_id_from_args(["--id", "abc"]) == "abc"
    assert project_id_from_args(["--id=xyz"]) == "xyz"
    assert project_id_from_args(["editor.html?id=42&tab=files"]) == "42"
    assert project_id_from_args(["editor.html?tab=files"]) is None
    assert project_id_from_args([]) is None
