"""Tests for the Flask application in webflame.server."""

import json

import pytest

from webflame.exporters.html import FlameGraphConfig
from webflame.profile import Profile, ValueType
from webflame.server import create_app

from conftest import make_sample


@pytest.fixture
def client(cpu_alloc_profile):
    app = create_app(cpu_alloc_profile, FlameGraphConfig(sample_index="alloc"))
    app.testing = True
    return app.test_client()


class TestFlamegraphPage:
    """Tests for GET /flamegraph."""

    def test_uses_configured_default(self, client):
        resp = client.get("/flamegraph")
        assert resp.status_code == 200
        assert resp.mimetype == "text/html"
        body = resp.get_data(as_text=True)
        assert "Type: alloc" in body

    def test_query_parameter_wins(self, client):
        body = client.get("/flamegraph?t=cpu").get_data(as_text=True)
        assert "Type: cpu" in body
        assert "Unit: seconds" in body

    def test_unknown_query_falls_back(self, client):
        resp = client.get("/flamegraph?t=wall")
        assert resp.status_code == 200
        assert "Type: alloc" in resp.get_data(as_text=True)

    def test_serialization_failure_is_500(self):
        profile = Profile([ValueType("samples", "count")], [make_sample(["bad\udcff"], 1)])
        app = create_app(profile)
        resp = app.test_client().get("/flamegraph")
        assert resp.status_code == 500
        assert resp.get_data(as_text=True) == "error serializing flame graph"

    def test_index_redirects(self, client):
        resp = client.get("/")
        assert resp.status_code == 302
        assert resp.headers["Location"].endswith("/flamegraph")

    def test_custom_base_url(self, cpu_alloc_profile):
        app = create_app(cpu_alloc_profile, FlameGraphConfig(base_url="/flame"))
        client = app.test_client()

        assert client.get("/flame").status_code == 200
        assert client.get("/flame.json").status_code == 200
        assert client.get("/flamegraph").status_code == 404
        assert "FLAMEGRAPH" not in app.config


class TestFlamegraphJson:
    """Tests for GET /flamegraph.json."""

    def test_tree(self, client):
        resp = client.get("/flamegraph.json?t=cpu")
        assert resp.status_code == 200
        assert resp.mimetype == "application/json"
        data = json.loads(resp.get_data(as_text=True))
        assert data["value"] == 18
        main = data["children"][0]
        assert {c["name"]: c["value"] for c in main["children"]} == {"foo": 13, "bar": 5}

    def test_empty_profile(self):
        app = create_app(Profile([ValueType("samples", "count")]))
        resp = app.test_client().get("/flamegraph.json")
        assert json.loads(resp.get_data(as_text=True)) == {"name": "root", "value": 0, "children": []}
