import json
import logging
import os
import shutil
import zipfile
from typing import Any, Dict

logger = logging.getLogger(__name__)


def reset_output_dir(out_dir: str) -> str:
    if os.path.exists(out_dir):
        shutil.rmtree(out_dir)
    os.makedirs(os.path.join(out_dir, "assets"))
    return os.path.join(out_dir, "assets")


def write_output(out_dir: str, html: str, css: str, manifest: Dict[str, Any]) -> Dict[str, str]:
    os.makedirs(out_dir, exist_ok=True)
    paths = {
        "html": os.path.join(out_dir, "index.html"),
        "css": os.path.join(out_dir, "styles.css"),
        "manifest": os.path.join(out_dir, "nodes.json"),
    }
    with open(paths["html"], "w", encoding="utf-8") as f:
        f.write(html)
    with open(paths["css"], "w", encoding="utf-8") as f:
        f.write(css)
    with open(paths["manifest"], "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    logger.info("[OUTPUT] Wrote %s", out_dir)
    return paths


def zip_output(out_dir: str, zip_path: str) -> str:
    if os.path.exists(zip_path):
        os.remove(zip_path)

    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zipf:
        for root, dirs, files in os.walk(out_dir):
            dirs.sort()
            for file in sorted(files):
                full = os.path.join(root, file)
                zipf.write(full, arcname=os.path.relpath(full, out_dir))

    return zip_path
