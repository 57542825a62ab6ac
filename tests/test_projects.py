from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from webforge.core.errors import ValidationError
from webforge.core.models import VirtualFile, language_for_path
from webforge.core.projects import ProjectRequest, create_project, preview_host
from webforge.core.storage import LocalStore
from webforge.core.templates import render_starter_files


def test_validate_step_names_the_missing_field() -> None:
    request = ProjectRequest()
    for step, field in [(1, "type"), (2, "style"), (4, "name")]:
        with pytest.raises(ValidationError) as info:
            request.validate_step(step)
        assert info.value.field == field
    request.validate_step(3)
    request.validate_step(5)

    request = ProjectRequest(type="blog", style="tech", name="   ")
    with pytest.raises(ValidationError):
        request.validate()


def test_toggles_keep_index_page() -> None:
    request = ProjectRequest()
    request.toggle_page("about")
    request.toggle_page("index")
    request.toggle_feature("gallery")
    request.toggle_feature("gallery")
    assert request.pages == ["index", "about"]
    assert request.features == []


def test_create_project_writes_row_and_starter_files(tmp_path) -> None:
    store = LocalStore(tmp_path / "projects.json")
    request = ProjectRequest(type="blog", style="tech", name=" Ada's <Blog> ", features=["newsletter"])

    project, files = create_project(store, request, render_starter_files("Ada's <Blog>"), user_id="u1")

    assert project.name == "Ada's <Blog>"
    assert project.status == "draft"
    assert project.settings == {"type": "blog", "style": "tech", "features": ["newsletter"], "pages": ["index"]}
    assert sorted(f.path for f in files) == ["index.html", "script.js", "style.css"]
    index = store.list_files(project.id)[0]
    assert "<title>Ada&#39;s &lt;Blog&gt;</title>" in index.content
    assert 'href="style.css"' in index.content


def test_invalid_request_writes_nothing(tmp_path) -> None:
    path = tmp_path / "projects.json"
    with pytest.raises(ValidationError):
        create_project(LocalStore(path), ProjectRequest(name="x"), [])
    assert not path.exists()


def test_preview_host_slug() -> None:
    assert preview_host("My Site!") == "my-site-.webforge.app"
    assert preview_host("Shop", "example.org") == "shop.example.org"


def test_language_is_derived_from_path() -> None:
    assert language_for_path("index.html") == "html"
    assert language_for_path("THEME.CSS") == "css"
    assert language_for_path("app.js") == "javascript"
    assert language_for_path("data.json") == "json"
    assert language_for_path("README") == "plaintext"
    stored = VirtualFile.from_dict({"id": 3, "project_id": "p", "path": "a.js", "language": "html"})
    assert stored.language == "javascript"
    assert stored.id == "3"


def test_chosen_pages_get_starter_files(tmp_path) -> None:
    store = LocalStore(tmp_path / "projects.json")
    request = ProjectRequest(type="landing", style="minimal", name="Shop")
    request.toggle_page("about")
    request.toggle_page("contact")

    files = render_starter_files(request.name, pages=request.pages)
    project, _created = create_project(store, request, files)

    assert project.settings["pages"] == ["index", "about", "contact"]
    assert [f.path for f in store.list_files(project.id)] == [
        "about.html",
        "contact.html",
        "index.html",
        "script.js",
        "style.css",
    ]
    about = dict(files)["about.html"]
    assert "<title>About - Shop</title>" in about
    assert 'href="index.html"' in about
