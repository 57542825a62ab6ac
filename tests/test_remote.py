from __future__ import annotations

import sys
from pathlib import Path

import pytest
import requests

sys.path.append(str(Path(__file__).resolve().parents[1]))

from conftest import FakeResponse
from webforge.core.auth import AuthClient, AuthSession, SessionStore
from webforge.core.errors import RemoteFetchError, RemotePersistError
from webforge.core.remote import SupabaseStore


def _store(http) -> SupabaseStore:
    return SupabaseStore("https://demo.supabase.co/", "anon", access_token="jwt", http=http)


def test_list_files_queries_by_project_ordered_by_path(http) -> None:
    http.queue(FakeResponse(200, [
        {"id": 1, "project_id": "p", "path": "index.html", "content": "<p></p>", "language": "css"},
        {"id": 2, "project_id": "p", "path": "style.css", "content": None},
    ]))

    files = _store(http).list_files("p")

    method, url, kwargs = http.calls[0]
    assert method == "GET"
    assert url == "https://demo.supabase.co/rest/v1/project_files"
    assert kwargs["params"] == {"select": "*", "project_id": "eq.p", "order": "path.asc"}
    assert kwargs["headers"]["apikey"] == "anon"
    assert kwargs["headers"]["Authorization"] == "Bearer jwt"
    assert [(f.id, f.language, f.content) for f in files] == [("1", "html", "<p></p>"), ("2", "css", "")]


def test_update_file_content_patches_one_row(http) -> None:
    http.queue(FakeResponse(204))

    _store(http).update_file_content("f9", "body{}")

    method, url, kwargs = http.calls[0]
    assert method == "PATCH"
    assert kwargs["params"] == {"id": "eq.f9"}
    assert kwargs["json"] == {"content": "body{}"}


def test_insert_project_returns_new_row(http) -> None:
    http.queue(FakeResponse(201, [{"id": "new", "name": "Site", "status": "draft", "settings": {"style": "tech"}}]))

    project = _store(http).insert_project("u1", "Site", "draft", "desc", {"style": "tech"})

    _method, url, kwargs = http.calls[0]
    assert url.endswith("/rest/v1/projects")
    assert kwargs["headers"]["Prefer"] == "return=representation"
    assert kwargs["json"]["user_id"] == "u1"
    assert project.id == "new"
    assert project.settings == {"style": "tech"}


def test_insert_files_tags_languages(http) -> None:
    http.queue(FakeResponse(201, [{"id": "a", "project_id": "p", "path": "script.js", "content": "x"}]))

    _store(http).insert_files("p", [("script.js", "x")])

    payload = http.calls[0][2]["json"]
    assert payload == [{"project_id": "p", "path": "script.js", "content": "x", "language": "javascript"}]


def test_get_project_missing_row_is_a_fetch_error(http) -> None:
    http.queue(FakeResponse(200, []))
    with pytest.raises(RemoteFetchError):
        _store(http).get_project("nope")


def test_http_errors_map_to_typed_errors(http) -> None:
    http.queue(FakeResponse(401, {"message": "JWT expired"}))
    with pytest.raises(RemoteFetchError, match="JWT expired"):
        _store(http).list_files("p")

    http.queue(requests.ConnectionError("offline"))
    with pytest.raises(RemotePersistError, match="offline"):
        _store(http).update_file_content("f", "x")


def test_requests_use_the_refreshed_session_token(http, tmp_path) -> None:
    clock = {"now": 1000.0}
    auth = AuthClient(
        "https://demo.supabase.co",
        "anon",
        SessionStore(tmp_path / "session.json"),
        http=http,
        clock=lambda: clock["now"],
    )
    auth.sessions.save(AuthSession("old-token", "rt", "u1", expires_at=4600.0))
    store = SupabaseStore("https://demo.supabase.co", "anon", http=http, token_provider=auth.access_token)

    http.queue(FakeResponse(204))
    store.update_file_content("f1", "a")
    assert http.calls[-1][2]["headers"]["Authorization"] == "Bearer old-token"

    clock["now"] = 5000.0
    http.queue(FakeResponse(200, {"access_token": "new-token", "refresh_token": "rt2", "expires_in": 3600}))
    http.queue(FakeResponse(204))
    store.update_file_content("f1", "b")

    refresh, patch = http.calls[-2:]
    assert refresh[2]["params"] == {"grant_type": "refresh_token"}
    assert patch[0] == "PATCH"
    assert patch[2]["headers"]["Authorization"] == "Bearer new-token"
    assert auth.sessions.load().refresh_token == "rt2"
