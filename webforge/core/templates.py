"""Built-in page templates."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable, List, Tuple

from jinja2 import DictLoader, Environment, select_autoescape

_TEMPLATES = {
    "placeholder.html": (
        "<!DOCTYPE html>\n"
        "<html><head><meta charset=\"UTF-8\"><title>{{ title }}</title></head>\n"
        "<body style=\"color:white; background:#1e1e2e; font-family:sans-serif; display:flex; "
        "justify-content:center; align-items:center; height:100vh; margin:0;\">{{ message }}</body>\n"
        "</html>\n"
    ),
    "starter/index.html": (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "    <meta charset=\"UTF-8\">\n"
        "    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">\n"
        "    <title>{{ name }}</title>\n"
        "    <link rel=\"stylesheet\" href=\"style.css\">\n"
        "</head>\n"
        "<body>\n"
        "    <main>\n"
        "        <h1>{{ name }}</h1>\n"
        "        <p>{{ description or \"Edit index.html to get started.\" }}</p>\n"
        "    </main>\n"
        "    <script src=\"script.js\"></script>\n"
        "</body>\n"
        "</html>\n"
    ),
    "starter/page.html": (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "    <meta charset=\"UTF-8\">\n"
        "    <title>{{ page | capitalize }} - {{ name }}</title>\n"
        "    <link rel=\"stylesheet\" href=\"style.css\">\n"
        "</head>\n"
        "<body>\n"
        "    <main>\n"
        "        <h1>{{ page | capitalize }}</h1>\n"
        "        <p><a href=\"index.html\">Back to {{ name }}</a></p>\n"
        "    </main>\n"
        "</body>\n"
        "</html>\n"
    ),
    "starter/style.css": (
        "body {\n"
        "    font-family: system-ui, sans-serif;\n"
        "    margin: 0;\n"
        "    padding: 2rem;\n"
        "}\n"
    ),
    "starter/script.js": "console.log({{ name | tojson }} + ' loaded');\n",
}

STARTER_FILES = ("index.html", "style.css", "script.js")


@lru_cache(maxsize=1)
def environment() -> Environment:
    return Environment(
        loader=DictLoader(_TEMPLATES),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )


def render_placeholder(message: str = "No index.html file", title: str = "Preview") -> str:
    return environment().get_template("placeholder.html").render(message=message, title=title)


def render_starter_files(
    name: str, description: str = "", pages: Iterable[str] = ()
) -> List[Tuple[str, str]]:
    """Return ``(path, content)`` pairs for a new, minimal project.

    Every page other than ``index`` gets its own ``<page>.html``.
    """

    env = environment()
    files = [
        (path, env.get_template(f"starter/{path}").render(name=name, description=description))
        for path in STARTER_FILES
    ]
    page_template = env.get_template("starter/page.html")
    for page in pages:
        if page != "index":
            files.append((f"{page}.html", page_template.render(name=name, page=page)))
    return files
