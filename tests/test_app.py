import unittest
from pathlib import Path
from unittest.mock import patch

import pytest
from starlette.testclient import TestClient

from pyenhance.runtime.app import EnhanceApp

LAYOUT = (
    "<!DOCTYPE html><html><head><title>{% block title %}{% endblock %}</title></head>"
    "<body>{% block body %}{% endblock %}</body></html>"
)


@pytest.fixture
def site(tmp_path):
    components = tmp_path / "components"
    pages = tmp_path / "pages"
    (pages / "blog").mkdir(parents=True)
    components.mkdir()

    (components / "my-header.html").write_text("<style>h1{color:red;}</style><h1><slot></slot></h1>")
    (components / "my-user.html").write_text("<span>{{ store.user }}</span>")
    (components / "my-broken.py").write_text("def render(ctx):\n    raise RuntimeError('kaput')\n")

    (pages / "_layout.html").write_text(LAYOUT)
    (pages / "index.html").write_text(
        '{% extends "_layout.html" %}{% block title %}Home{% endblock %}'
        "{% block body %}<my-header enhance-ssr>Welcome</my-header>{% endblock %}"
    )
    (pages / "about.html").write_text("<p>About</p>")
    (pages / "broken.html").write_text("<main><my-broken enhance-ssr></my-broken></main>")
    (pages / "blog" / "[slug].html").write_text(
        '{% extends "_layout.html" %}{% block body %}'
        "<my-header enhance-ssr>{{ params.slug }}</my-header><my-user enhance-ssr></my-user>"
        "{% endblock %}"
    )
    return tmp_path


def make_app(site, **kwargs):
    return EnhanceApp(
        components_dir=str(site / "components"),
        pages_dir=str(site / "pages"),
        state_provider=lambda request: {"user": request.query_params.get("user", "anon")},
        **kwargs,
    )


def test_routes_from_pages(site):
    app = make_app(site)
    assert app.pages == {
        "/": "index.html",
        "/about": "about.html",
        "/blog/{slug}": "blog/[slug].html",
        "/broken": "broken.html",
    }
    assert app.registry.tags() == ["my-broken", "my-header", "my-user"]


def test_index_page(site):
    client = TestClient(make_app(site))
    response = client.get("/")
    assert response.status_code == 200
    assert "<title>Home</title>" in response.text
    assert '<my-header enhanced="✨"><h1>Welcome</h1></my-header>' in response.text
    assert '<style enhanced="✨">\nmy-header h1 {\n  color: red;\n}\n</style></head>' in response.text


def test_page_without_components(site):
    client = TestClient(make_app(site))
    response = client.get("/about")
    assert response.status_code == 200
    assert response.text == "<p>About</p>"


def test_parameterised_page_with_state(site):
    client = TestClient(make_app(site))
    response = client.get("/blog/hello", params={"user": "ada"})
    assert response.status_code == 200
    assert '<my-header enhanced="✨"><h1>hello</h1></my-header>' in response.text
    assert '<my-user enhanced="✨"><span>ada</span></my-user>' in response.text


def test_private_templates_are_not_routed(site):
    client = TestClient(make_app(site))
    assert client.get("/_layout").status_code == 404


def test_render_error_page(site):
    client = TestClient(make_app(site))
    response = client.get("/broken")
    assert response.status_code == 500
    assert "RenderError" in response.text
    assert "my-broken" in response.text
    assert "Traceback" not in response.text


def test_render_error_page_debug(site):
    client = TestClient(make_app(site, debug=True))
    response = client.get("/broken")
    assert response.status_code == 500
    assert "Traceback" in response.text


def test_static_files(site):
    static = site / "static"
    static.mkdir()
    (static / "app.css").write_text("body{}")
    client = TestClient(make_app(site, static_dir=str(static)))
    response = client.get("/static/app.css")
    assert response.status_code == 200
    assert response.text == "body{}"


class TestDirectoryDiscovery(unittest.TestCase):
    def test_discovers_src_layout(self) -> None:
        import tempfile

        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "src" / "pages").mkdir(parents=True)
            (root / "components").mkdir()
            with patch("pathlib.Path.cwd", return_value=root):
                app = EnhanceApp()
            self.assertEqual(app.pages_dir, root / "src" / "pages")
            self.assertEqual(app.components_dir, root / "components")
            self.assertEqual(app.pages, {})
