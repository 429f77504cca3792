import logging
import re
from typing import Any, Dict, Optional

import requests
from fastapi import HTTPException

import config
from Services.errors import FigmaApiError
from storedb import get_cached_figma, save_figma_json

logger = logging.getLogger(__name__)

_BARE_KEY = re.compile(r"^[a-zA-Z0-9]+$")


def extract_file_key(figma_url: str) -> str:
    """Accept a bare file key or any /file|design|make/<key> URL."""
    figma_url = str(figma_url).strip()

    if _BARE_KEY.match(figma_url):
        return figma_url

    match = re.search(r"/(file|design|make)/([a-zA-Z0-9]+)", figma_url)
    if not match:
        raise HTTPException(status_code=400, detail="Invalid Figma URL")
    return match.group(2)


def figma_headers() -> Dict[str, str]:
    if not config.FIGMA_TOKEN:
        raise FigmaApiError(401, "FIGMA_TOKEN not set")
    return {"X-Figma-Token": config.FIGMA_TOKEN}


def figma_get(path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
    url = f"{config.FIGMA_API_BASE}{path}"
    try:
        response = requests.get(
            url,
            headers=figma_headers(),
            params=params,
            timeout=config.FIGMA_REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise FigmaApiError(502, str(e)) from e

    if response.status_code >= 400:
        raise FigmaApiError(response.status_code, response.text[:500])
    return response


# ------------------------------------------------------------------
# FILE JSON (cached by lastModified)
# ------------------------------------------------------------------

def get_file_last_modified(file_key: str) -> Optional[str]:
    """Cheap probe: depth=1 skips the node tree."""
    response = figma_get(f"/files/{file_key}", params={"depth": 1})
    return response.json().get("lastModified")


def fetch_figma_file(file_key: str) -> dict:
    response = figma_get(f"/files/{file_key}")
    return response.json()


def get_figma_file(file_key: str, use_cache: bool = True) -> dict:
    if use_cache:
        cached = get_cached_figma(file_key)
        if cached and cached.get("figma_json"):
            current = get_file_last_modified(file_key)
            if current and current == cached.get("last_modified"):
                logger.info("[CACHE] Using stored Figma JSON for %s", file_key)
                return cached["figma_json"]
            logger.info("[CACHE] Stored Figma JSON for %s is stale", file_key)

    logger.info("[FIGMA API] Fetching fresh JSON for %s", file_key)
    figma_json = fetch_figma_file(file_key)
    save_figma_json(file_key, figma_json)
    return figma_json
