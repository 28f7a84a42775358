from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, File, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from api import storage
from api.schemas import MessageResponse, UploadCreatedResponse, UploadDetailModel, UploadSummaryModel
from api.sheets import UnsupportedSheetError, read_sheet
from core.config import load_config

config = load_config()
app = FastAPI(title="Spreadsheet Analytics Upload API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8501", "http://127.0.0.1:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def require_token(request: Request) -> str:
    token = request.headers.get("Authorization")
    if not token:
        raise HTTPException(status_code=403, detail="No token provided")
    return token


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/", response_class=PlainTextResponse)
def root():
    return "API is running."


@app.post("/api/uploads")
async def create_upload(request: Request, file: Optional[UploadFile] = File(default=None)):
    owner = require_token(request)
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    content = await file.read()
    filename = file.filename or "upload.xlsx"
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > config.max_upload_bytes:
        raise HTTPException(status_code=400, detail=f"File exceeds the {config.max_upload_bytes} byte limit")

    try:
        data = read_sheet(content, filename)
    except UnsupportedSheetError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.warning("Could not parse %s: %s", filename, exc)
        raise HTTPException(status_code=400, detail=f"Could not parse spreadsheet: {exc}") from exc

    try:
        upload = storage.save_upload(owner, filename, data)
        logger.info("Stored upload %s (%s, %d rows)", upload.id, filename, len(data))
        body = UploadCreatedResponse(message="Upload saved", upload=UploadSummaryModel.model_validate(upload.summary()))
        return _json(body.model_dump(by_alias=True), status_code=201)
    except Exception as exc:
        logger.exception("create_upload failed")
        return _error(exc)


@app.get("/api/uploads")
def list_uploads(request: Request):
    owner = require_token(request)
    try:
        uploads = [UploadSummaryModel.model_validate(u.summary()) for u in storage.list_uploads(owner)]
        return _json([u.model_dump(by_alias=True) for u in uploads])
    except Exception as exc:
        logger.exception("list_uploads failed")
        return _error(exc)


@app.get("/api/uploads/{upload_id}")
def get_upload(upload_id: str, request: Request):
    owner = require_token(request)
    upload = storage.get_upload(owner, upload_id)
    if upload is None:
        raise HTTPException(status_code=404, detail="Upload not found")
    try:
        return _json(UploadDetailModel.model_validate(upload.detail()).model_dump(by_alias=True))
    except Exception as exc:
        logger.exception("get_upload failed")
        return _error(exc)


@app.delete("/api/uploads/{upload_id}")
def delete_upload(upload_id: str, request: Request):
    owner = require_token(request)
    if not storage.delete_upload(owner, upload_id):
        raise HTTPException(status_code=404, detail="Upload not found")
    logger.info("Deleted upload %s", upload_id)
    return _json(MessageResponse(message="Upload deleted").model_dump())
