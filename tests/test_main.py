import json
import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import config
import main
from Services.errors import FigmaApiError
from Services.naming import fallback_asset_name

client = TestClient(main.app)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "OUTPUT_DIR", str(tmp_path / "site"))
    monkeypatch.setattr(config, "ZIP_PATH", str(tmp_path / "site.zip"))
    return tmp_path


@pytest.fixture
def no_export():
    with patch("main.export_fallback_assets", return_value={}) as fallback, \
            patch("main.export_bitmap_assets", return_value={}) as bitmaps:
        yield fallback, bitmaps


def test_root():
    assert client.get("/").json() == {"message": "Figma converter backend running"}


def test_convert_writes_site(workspace, no_export, sample_file):
    with patch("main.get_figma_file", return_value=sample_file) as fetch:
        r = client.post("/convert", json={"figma_url": "https://www.figma.com/design/KEY123/x"})

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["meta"] == {"fileKey": "KEY123", "name": "Test file", "lastModified": "2024-01-01T00:00:00Z"}
    assert body["counts"] == {"total": 4, "markup": 2, "text": 1, "imageFallback": 1}
    assert body["stats"]["nodes_total"] == 5
    assert body["downloadUrl"].endswith("/download")
    fetch.assert_called_once_with("KEY123", use_cache=True)

    out_dir = workspace / "site" / "KEY123"
    assert (out_dir / "index.html").read_text(encoding="utf-8").startswith("<!doctype html>")
    assert (out_dir / "assets" / fallback_asset_name("1:6")).exists()
    manifest = json.loads((out_dir / "nodes.json").read_text(encoding="utf-8"))
    assert manifest["meta"]["fileKey"] == "KEY123"
    assert os.path.exists(config.ZIP_PATH)

    fallback, _ = no_export
    assert fallback.call_args.args[1] == ("1:6",)


def test_download_after_convert(workspace, no_export, sample_file):
    with patch("main.get_figma_file", return_value=sample_file):
        client.post("/convert", json={"figma_url": "KEY123"})
    r = client.get("/download")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/zip"


def test_download_before_convert(workspace):
    assert client.get("/download").status_code == 404


def test_invalid_url(workspace):
    r = client.post("/convert", json={"figma_url": "https://example.com/nope"})
    assert r.status_code == 400


@pytest.mark.parametrize("figma_status,expected", [(404, 404), (403, 401), (429, 429), (500, 502)])
def test_figma_errors_are_mapped(workspace, figma_status, expected):
    with patch("main.get_figma_file", side_effect=FigmaApiError(figma_status, "nope")):
        r = client.post("/convert", json={"figma_url": "KEY123"})
    assert r.status_code == expected
    assert r.json()["detail"]["hint"]


def test_invalid_document_is_422(workspace):
    with patch("main.get_figma_file", return_value={"document": {}}):
        r = client.post("/convert", json={"figma_url": "KEY123"})
    assert r.status_code == 422


def test_unexpected_error_is_500(workspace):
    with patch("main.get_figma_file", side_effect=RuntimeError("boom")):
        r = client.post("/convert", json={"figma_url": "KEY123"})
    assert r.status_code == 500
    assert r.json()["detail"] == "boom"
