"""
Diagram API Tests
=================

Runs the FastAPI app in-process with the built-in sample network.
"""

import pytest
from fastapi.testclient import TestClient

from gridview.api.server import app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("GRIDVIEW_API_URL", raising=False)
    with TestClient(app) as test_client:
        yield test_client


def element_ids(layer):
    return {item["element"]["id"] for item in layer["items"] if "element" in item}


class TestDiagramApi:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "online"
        assert body["source"] == "sample"
        assert body["nodes"] == 5
        assert body["connections"] == 4
        assert body["meters"] == 2
        assert body["integrity_errors"] == 0

    def test_scene_layers(self, client):
        body = client.get("/api/v1/scene").json()
        assert [layer["kind"] for layer in body["layers"]] == [
            "connections", "nodes", "labels", "overlays",
        ]
        assert len(body["connections"]) == 4
        assert body["diagnostics"] == []

    def test_region_filter(self, client):
        body = client.get("/api/v1/scene", params={"region": "North"}).json()
        layers = {layer["kind"]: layer for layer in body["layers"]}
        assert element_ids(layers["nodes"]) == {"BUS-110-1", "BUS-35-1"}
        assert element_ids(layers["connections"]) == {"1"}
        excluded = {d["element_id"] for d in body["diagnostics"] if d["kind"] == "excluded_by_filter"}
        assert {"BUS-10-1", "2", "NM-0002"} <= excluded

    def test_hidden_labels(self, client):
        body = client.get("/api/v1/scene", params={"show_labels": "false"}).json()
        labels = next(layer for layer in body["layers"] if layer["kind"] == "labels")
        assert labels["items"] == []

    def test_unknown_view_mode(self, client):
        response = client.get("/api/v1/scene", params={"view_mode": "thermal"})
        assert response.status_code == 400

    def test_svg(self, client):
        response = client.get("/api/v1/scene.svg", params={"scale": 1.5, "width": 800})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert 'width="800"' in response.text
        assert "scale(1.5)" in response.text

    def test_svg_rejects_zero_scale(self, client):
        assert client.get("/api/v1/scene.svg", params={"scale": 0}).status_code == 422

    @pytest.mark.parametrize("params", [
        {"scale": "inf"},
        {"offset_x": "nan"},
        {"offset_y": "-inf"},
    ])
    def test_svg_rejects_non_finite_transform(self, client, params):
        response = client.get("/api/v1/scene.svg", params=params)
        assert response.status_code == 422
        assert not response.headers["content-type"].startswith("image/svg+xml")

    def test_svg_scale_clamped_to_viewport_bounds(self, client):
        high = client.get("/api/v1/scene.svg", params={"scale": 100, "offset_x": 10}).text
        low = client.get("/api/v1/scene.svg", params={"scale": 0.01}).text
        assert 'transform="scale(2) translate(10, 0)"' in high
        assert 'transform="scale(0.5) translate(0, 0)"' in low

    def test_legend(self, client):
        entries = client.get("/api/v1/legend", params={"view_mode": "load"}).json()
        assert [e["color_class"] for e in entries] == ["load_low", "load_medium", "load_high"]
