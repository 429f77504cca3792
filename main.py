"""
figma → HTML/CSS converter backend
FastAPI server that turns a Figma file into index.html + styles.css + assets.
"""
import os
from dataclasses import asdict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

import config
from logging_config import get_api_logger, get_services_logger
from models import ConvertMeta, ConvertRequest, ConvertResponse
from Services.classifier import ClassifierPolicy
from Services.converter import classify_document, emit_document
from Services.errors import FigmaApiError, InvalidDocumentError
from Services.figma_service import extract_file_key, get_figma_file
from Services.image import export_bitmap_assets, export_fallback_assets, fill_missing_assets
from Services.manifest import build_manifest, count_strategies
from Services.output_writer import reset_output_dir, write_output, zip_output

logger = get_api_logger()
get_services_logger()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _figma_status(status_code: int) -> int:
    if status_code == 404:
        return 404
    if status_code in (401, 403):
        return 401
    if status_code == 429:
        return 429
    return 502


@app.get("/")
def root():
    return {"message": "Figma converter backend running"}


@app.post("/convert", response_model=ConvertResponse)
def convert_design(req: ConvertRequest):
    try:
        file_key = extract_file_key(req.figma_url)

        # -------- 1. Figma file (cached by lastModified) --------
        figma_json = get_figma_file(file_key, use_cache=req.use_cache)
        last_modified = figma_json.get("lastModified")

        # -------- 2. Normalize + classify --------
        document = classify_document(figma_json, ClassifierPolicy.from_config())
        for warning in document.warnings:
            logger.warning("[CONVERT] %s", warning)

        # -------- 3. Assets --------
        out_dir = os.path.join(config.OUTPUT_DIR, file_key)
        assets_dir = reset_output_dir(out_dir)

        exported = export_fallback_assets(file_key, document.fallback_ids, assets_dir, last_modified)
        fill_missing_assets(document.fallback_ids, exported, assets_dir)
        image_assets = export_bitmap_assets(
            file_key,
            document.image_fill_nodes,
            assets_dir,
            scale=config.FIGMA_BITMAP_SCALE,
            last_modified=last_modified,
        )

        # -------- 4. Emit + write --------
        name = figma_json.get("name") or file_key
        result = emit_document(document, title=f"{name} - Generated", image_assets=image_assets)
        manifest = build_manifest(
            file_key,
            figma_json,
            document.frames,
            document.warnings,
            document.stats,
        )
        write_output(out_dir, result.html, result.css, manifest)

        # -------- 5. Zip --------
        zip_output(out_dir, config.ZIP_PATH)

        return ConvertResponse(
            meta=ConvertMeta(fileKey=file_key, name=figma_json.get("name"), lastModified=last_modified),
            stats=asdict(document.stats),
            counts=count_strategies(document.frames),
            warnings=list(document.warnings),
            downloadUrl=f"{config.PUBLIC_BASE_URL}/download",
        )

    except HTTPException:
        raise
    except FigmaApiError as e:
        logger.warning("[FIGMA] %s", e)
        raise HTTPException(status_code=_figma_status(e.status_code), detail={"message": str(e), "hint": e.hint})
    except InvalidDocumentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception("[CONVERT] Conversion failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/download")
def download_zip():
    if not os.path.exists(config.ZIP_PATH):
        raise HTTPException(status_code=404, detail="Nothing converted yet")
    return FileResponse(
        config.ZIP_PATH,
        media_type="application/zip",
        filename="figma_site.zip",
    )
