from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Iterable, Optional

from pymongo import MongoClient

import config


@lru_cache(maxsize=1)
def _db():
    client = MongoClient(config.MONGO_URI, serverSelectionTimeoutMS=2000)
    return client[config.MONGO_DB]


def _now():
    return datetime.now(timezone.utc)


# ---------- MAIN FIGMA CACHE ----------

@lru_cache(maxsize=1)
def files_collection():
    collection = _db()["figma_files"]
    collection.create_index([("file_key", 1)], unique=True)
    return collection


def save_figma_json(file_key: str, figma_json: dict):
    files_collection().update_one(
        {"file_key": file_key},
        {
            "$set": {
                "file_key": file_key,
                "figma_json": figma_json,
                "last_modified": figma_json.get("lastModified"),
                "updated_at": _now(),
            }
        },
        upsert=True,
    )


def get_cached_figma(file_key: str) -> Optional[dict]:
    return files_collection().find_one(
        {"file_key": file_key},
        {"_id": 0},
    )


# ---------- NODE IMAGE CACHE ----------

@lru_cache(maxsize=1)
def images_collection():
    collection = _db()["figma_node_images"]
    collection.create_index(
        [("file_key", 1), ("node_id", 1), ("format", 1)],
        unique=True,
    )
    return collection


def get_cached_images(
    file_key: str,
    node_ids: Iterable[str],
    fmt: str,
    last_modified: Optional[str] = None,
) -> Dict[str, bytes]:
    """Cached binaries for ``node_ids``; entries rendered against another
    file version are ignored."""
    query = {"file_key": file_key, "node_id": {"$in": list(node_ids)}, "format": fmt}
    if last_modified:
        query["last_modified"] = last_modified
    docs = images_collection().find(query, {"_id": 0})
    return {d["node_id"]: d["data"] for d in docs}


def save_images_binary(
    file_key: str,
    images: Dict[str, bytes],
    fmt: str,
    last_modified: Optional[str] = None,
):
    for node_id, data in images.items():
        images_collection().update_one(
            {"file_key": file_key, "node_id": node_id, "format": fmt},
            {
                "$set": {
                    "data": data,
                    "last_modified": last_modified,
                    "updated_at": _now(),
                }
            },
            upsert=True,
        )
