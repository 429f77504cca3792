from unittest.mock import MagicMock, patch

import pytest
import requests
from fastapi import HTTPException

from Services.errors import FigmaApiError
from Services.figma_service import extract_file_key, figma_get, figma_headers, get_figma_file


def _response(status=200, body=None):
    r = MagicMock()
    r.status_code = status
    r.json.return_value = body or {}
    r.text = "error body"
    return r


@pytest.mark.parametrize(
    "url",
    [
        "AbC123",
        "https://www.figma.com/file/AbC123/My-Design",
        "https://www.figma.com/design/AbC123/My-Design?node-id=1-2",
        "https://www.figma.com/make/AbC123/Prototype",
    ],
)
def test_extract_file_key(url):
    assert extract_file_key(url) == "AbC123"


def test_extract_file_key_rejects_garbage():
    with pytest.raises(HTTPException) as exc:
        extract_file_key("https://example.com/nothing-here")
    assert exc.value.status_code == 400


def test_missing_token(monkeypatch):
    import config

    monkeypatch.setattr(config, "FIGMA_TOKEN", None)
    with pytest.raises(FigmaApiError) as exc:
        figma_headers()
    assert exc.value.status_code == 401


@patch("Services.figma_service.requests.get")
def test_figma_get_maps_http_errors(mock_get):
    mock_get.return_value = _response(404)
    with pytest.raises(FigmaApiError) as exc:
        figma_get("/files/KEY")
    assert exc.value.status_code == 404
    assert "access" in exc.value.hint


@patch("Services.figma_service.requests.get")
def test_figma_get_maps_network_errors(mock_get):
    mock_get.side_effect = requests.ConnectionError("down")
    with pytest.raises(FigmaApiError) as exc:
        figma_get("/files/KEY")
    assert exc.value.status_code == 502


@patch("Services.figma_service.save_figma_json")
@patch("Services.figma_service.get_cached_figma")
@patch("Services.figma_service.requests.get")
def test_cache_hit_skips_full_fetch(mock_get, mock_cached, mock_save):
    mock_cached.return_value = {"figma_json": {"name": "cached"}, "last_modified": "v1"}
    mock_get.return_value = _response(200, {"lastModified": "v1"})

    assert get_figma_file("KEY") == {"name": "cached"}
    assert mock_get.call_count == 1
    assert mock_get.call_args.kwargs["params"] == {"depth": 1}
    mock_save.assert_not_called()


@patch("Services.figma_service.save_figma_json")
@patch("Services.figma_service.get_cached_figma")
@patch("Services.figma_service.requests.get")
def test_stale_cache_refetches(mock_get, mock_cached, mock_save):
    fresh = {"name": "fresh", "lastModified": "v2"}
    mock_cached.return_value = {"figma_json": {"name": "cached"}, "last_modified": "v1"}
    mock_get.side_effect = [_response(200, {"lastModified": "v2"}), _response(200, fresh)]

    assert get_figma_file("KEY") == fresh
    mock_save.assert_called_once_with("KEY", fresh)


@patch("Services.figma_service.save_figma_json")
@patch("Services.figma_service.get_cached_figma")
@patch("Services.figma_service.requests.get")
def test_cache_disabled(mock_get, mock_cached, mock_save):
    mock_get.return_value = _response(200, {"name": "fresh"})

    assert get_figma_file("KEY", use_cache=False) == {"name": "fresh"}
    mock_cached.assert_not_called()
    mock_save.assert_called_once()
