"""
Unit tests for the HTTP host endpoints.
"""

import base64
import logging

from fastapi.testclient import TestClient


class TestPing:
    """Test cases for the health check endpoint."""

    def test_ping_reports_engine(self, client: TestClient):
        response = client.get("/ping")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"] == "PONG!"
        assert data["engine"] == "pandoc 3.1.11"

    def test_ping_content_type(self, client: TestClient):
        response = client.get("/ping")
        assert response.headers["content-type"] == "application/json"


class TestConvertBatch:
    """Test cases for the batch conversion endpoint."""

    def test_converts_items_and_returns_media(self, client: TestClient, fake_engine, b64):
        fake_engine.media[b"# A"] = {"media/image1.png": b"png bytes"}
        body = {
            "fromFormat": "markdown",
            "toFormat": "html",
            "items": [
                {"json": {"id": 1}, "binary": {"data": {"data": b64(b"# A"), "fileName": "a.md"}}},
                {"json": {"id": 2}, "binary": {"data": {"data": b64(b"# B"), "fileName": "b.md"}}},
            ],
        }

        response = client.post("/convert/batch", json=body)

        assert response.status_code == 200
        data = response.json()
        assert [r["json"] for r in data["results"]] == [{"id": 1}, {"id": 2}]
        first = data["results"][0]["binary"]["data"]
        assert base64.b64decode(first["data"]) == b"# A"
        assert first["mimeType"] == "text/html"
        assert first["fileName"] == "a.html"
        assert len(data["media"]) == 1
        assert data["media"][0]["json"] == {"sourceDocument": "a.md", "imageName": "media/image1.png"}
        assert data["media"][0]["binary"]["image"]["mimeType"] == "image/png"

    def test_continue_on_fail_returns_error_records(self, client: TestClient, b64):
        body = {
            "continueOnFail": True,
            "items": [
                {"binary": {"data": {"data": b64(b"ok"), "fileName": "ok.md"}}},
                {"json": {"note": "no payload"}},
                {"binary": {"data": {"data": "%%% not base64 %%%"}}},
            ],
        }

        response = client.post("/convert/batch", json=body)

        assert response.status_code == 200
        results = response.json()["results"]
        assert len(results) == 3
        assert results[1]["json"]["error"] == "missing required document payload"
        assert results[1]["binary"] == {}
        assert "not valid base64" in results[2]["json"]["error"]

    def test_engine_failure_aborts_batch(self, client: TestClient, fake_engine, b64):
        fake_engine.failures[b"bad"] = "pandoc: YAML parse exception"
        body = {
            "items": [
                {"binary": {"data": {"data": b64(b"good")}}},
                {"binary": {"data": {"data": b64(b"bad")}}},
                {"binary": {"data": {"data": b64(b"never")}}},
            ],
        }

        response = client.post("/convert/batch", json=body)

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "BATCH_ABORTED"
        assert data["item_index"] == 1
        assert data["cause"]["stderr"] == "pandoc: YAML parse exception"
        assert "pandoc: YAML parse exception" in data["details"]
        assert len(fake_engine.calls) == 2

    def test_missing_payload_aborts_with_422(self, client: TestClient):
        response = client.post("/convert/batch", json={"items": [{"json": {}}]})

        assert response.status_code == 422
        assert response.json()["item_index"] == 0

    def test_binary_property_name(self, client: TestClient, b64):
        body = {
            "binaryPropertyName": "file",
            "items": [{"binary": {"file": {"data": b64(b"x"), "fileName": "x.md"}}}],
        }

        response = client.post("/convert/batch", json=body)

        assert response.status_code == 200
        assert "file" in response.json()["results"][0]["binary"]

    def test_malformed_items_become_error_records(self, client: TestClient, b64):
        body = {
            "continueOnFail": True,
            "items": [
                {"binary": {"data": "not-an-object"}},
                {"json": "text"},
                {"json": {"id": 3, "toFormat": 7}, "binary": {"data": {"data": b64(b"x")}}},
                {"json": {"id": 4}, "binary": {"data": {"data": b64(b"ok"), "fileName": "ok.md"}}},
            ],
        }

        response = client.post("/convert/batch", json=body)

        assert response.status_code == 200
        results = response.json()["results"]
        assert "document payload must be an object" in results[0]["json"]["error"]
        assert "item json must be an object" in results[1]["json"]["error"]
        assert results[2]["json"]["code"] == "INVALID_PARAMETER"
        assert results[2]["json"]["item"] == {"id": 3, "toFormat": 7}
        assert results[3]["json"] == {"id": 4}
        assert results[3]["binary"]["data"]["fileName"] == "ok.html"

    def test_mistyped_options_abort_with_422(self, client: TestClient, b64):
        body = {"items": [{"json": {"options": 5}, "binary": {"data": {"data": b64(b"x")}}}]}

        response = client.post("/convert/batch", json=body)

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "BATCH_ABORTED"
        assert data["cause"]["code"] == "INVALID_PARAMETER"

    def test_batch_log_reaches_package_handlers(self, client: TestClient, b64, caplog):
        body = {"items": [{"binary": {"data": {"data": b64(b"x")}}}]}

        with caplog.at_level(logging.INFO, logger="pandoc_batch"):
            client.post("/convert/batch", json=body)

        assert any(
            r.name == "pandoc_batch.app" and "Converting batch of 1 items" in r.getMessage()
            for r in caplog.records
        )

    def test_workspaces_cleaned_up(self, client: TestClient, workspace_root, b64):
        body = {"items": [{"binary": {"data": {"data": b64(b"x")}}}]}

        client.post("/convert/batch", json=body)

        assert list(workspace_root.iterdir()) == []
