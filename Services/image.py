import logging
import os
import time
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import requests

import config
from Services.errors import FigmaApiError
from Services.figma_service import figma_headers
from Services.ir_types import ImageAsset, ImageFill
from Services.naming import bitmap_asset_name, fallback_asset_name, safe_id
from storedb import get_cached_images, save_images_binary

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# FIGMA IMAGE API
# ------------------------------------------------------------------

def get_figma_image_urls(file_key: str, node_ids: Sequence[str], fmt: str, scale: int = 1) -> Dict[str, Optional[str]]:
    """node_id -> signed render URL (None when Figma could not render it).

    Retries HTTP 429 with Retry-After / exponential backoff; gives up on
    the remaining batches once retries are exhausted.
    """
    url = f"{config.FIGMA_API_BASE}/images/{file_key}"
    images: Dict[str, Optional[str]] = {}
    batch = max(1, config.FIGMA_IMAGE_BATCH_SIZE)

    for i in range(0, len(node_ids), batch):
        chunk = node_ids[i : i + batch]
        params = {"ids": ",".join(chunk), "format": fmt}
        if fmt != "svg":
            params["scale"] = scale

        for attempt in range(config.FIGMA_IMAGE_MAX_RETRIES + 1):
            try:
                response = requests.get(
                    url,
                    headers=figma_headers(),
                    params=params,
                    timeout=config.FIGMA_REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                raise FigmaApiError(502, str(e)) from e
            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                try:
                    wait = float(retry_after) if retry_after else config.FIGMA_IMAGE_RETRY_BACKOFF * (2 ** attempt)
                except ValueError:
                    wait = config.FIGMA_IMAGE_RETRY_BACKOFF * (2 ** attempt)
                if attempt < config.FIGMA_IMAGE_MAX_RETRIES:
                    time.sleep(wait)
                    continue
                logger.warning("[FIGMA] Image export rate-limited; skipping remaining nodes")
                return images

            if response.status_code >= 400:
                raise FigmaApiError(response.status_code, response.text[:500])

            body = response.json()
            if body.get("err"):
                raise FigmaApiError(502, str(body["err"]))
            images.update(body.get("images") or {})
            break

    return images


def download(url: str) -> Optional[bytes]:
    try:
        r = requests.get(url, timeout=config.FIGMA_REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.warning("[FIGMA] Download failed for %s: %s", url, e)
        return None
    if r.status_code >= 400:
        logger.warning("[FIGMA] Download failed for %s: %s", url, r.status_code)
        return None
    return r.content or None


def export_node_images(
    file_key: str,
    node_ids: Iterable[str],
    fmt: str = "svg",
    scale: int = 1,
    last_modified: Optional[str] = None,
) -> Dict[str, bytes]:
    """Rendered bytes per node id. Failed nodes are simply absent."""
    node_ids = sorted(set(node_ids))
    if not node_ids:
        return {}

    # 1. CHECK CACHE FIRST
    result = dict(get_cached_images(file_key, node_ids, fmt, last_modified))
    missing = [n for n in node_ids if n not in result]
    if not missing:
        logger.info("[CACHE] Using %d stored %s renders", len(result), fmt)
        return result

    # 2. FETCH THE REST
    logger.info("[FIGMA] Exporting %d nodes as %s", len(missing), fmt)
    try:
        urls = get_figma_image_urls(file_key, missing, fmt, scale)
    except FigmaApiError as e:
        logger.warning("[FIGMA] Image export failed: %s", e)
        urls = {}

    fetched: Dict[str, bytes] = {}
    for node_id in missing:
        remote = urls.get(node_id)
        if not remote:
            continue
        data = download(remote)
        if data:
            fetched[node_id] = data

    # 3. STORE ONCE
    if fetched:
        save_images_binary(file_key, fetched, fmt, last_modified)

    result.update(fetched)
    return result


# ------------------------------------------------------------------
# ASSET FILES
# ------------------------------------------------------------------

def placeholder_svg(node_id: str) -> str:
    label = safe_id(node_id)
    return "".join([
        f'<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16" viewBox="0 0 16 16" role="img" aria-label="Missing asset {label}">',
        '<rect x="0.5" y="0.5" width="15" height="15" rx="2" ry="2" fill="none" stroke="#ccc" stroke-width="1"/>',
        '<line x1="3" y1="3" x2="13" y2="13" stroke="#ccc" stroke-width="1"/>',
        '<line x1="13" y1="3" x2="3" y2="13" stroke="#ccc" stroke-width="1"/>',
        "</svg>",
    ])


def _write(path: str, data: bytes):
    with open(path, "wb") as f:
        f.write(data)


def export_fallback_assets(
    file_key: str,
    node_ids: Iterable[str],
    assets_dir: str,
    last_modified: Optional[str] = None,
) -> Dict[str, str]:
    """Write exported SVGs for image-fallback nodes; node_id -> local path.

    Nodes whose export failed are absent from the result.
    """
    os.makedirs(assets_dir, exist_ok=True)
    rendered = export_node_images(file_key, node_ids, fmt="svg", last_modified=last_modified)

    paths = {}
    for node_id, data in rendered.items():
        path = os.path.join(assets_dir, fallback_asset_name(node_id))
        _write(path, data)
        paths[node_id] = path
    return paths


def fill_missing_assets(
    node_ids: Iterable[str],
    exported: Mapping[str, str],
    assets_dir: str,
) -> Dict[str, str]:
    """Every reserved fallback address ends up with a file behind it."""
    os.makedirs(assets_dir, exist_ok=True)
    paths = dict(exported)
    missing: List[str] = []

    for node_id in node_ids:
        if node_id in paths:
            continue
        path = os.path.join(assets_dir, fallback_asset_name(node_id))
        _write(path, placeholder_svg(node_id).encode("utf-8"))
        paths[node_id] = path
        missing.append(node_id)

    if missing:
        logger.warning("[ASSETS] %d placeholders written: %s", len(missing), ", ".join(missing))
    return paths


def export_bitmap_assets(
    file_key: str,
    image_nodes: Iterable[Tuple[str, ImageFill]],
    assets_dir: str,
    scale: int = 2,
    last_modified: Optional[str] = None,
) -> Dict[str, ImageAsset]:
    """PNG renders for markup nodes with an image fill -> stylesheet assets."""
    image_nodes = list(image_nodes)
    if not image_nodes:
        return {}

    os.makedirs(assets_dir, exist_ok=True)
    rendered = export_node_images(
        file_key,
        [node_id for node_id, _ in image_nodes],
        fmt="png",
        scale=scale,
        last_modified=last_modified,
    )

    assets = {}
    for node_id, fill in image_nodes:
        data = rendered.get(node_id)
        if not data:
            continue
        filename = bitmap_asset_name(node_id, scale)
        _write(os.path.join(assets_dir, filename), data)
        assets[node_id] = ImageAsset(relative_path=f"./assets/{filename}", scale_mode=fill.scale_mode)
    return assets
