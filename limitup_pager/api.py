import json
import logging
import os
import shutil
import tempfile
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from limitup_pager import __version__ as TOOL_VERSION
from limitup_pager.config import configure_logging, load_settings
from limitup_pager.errors import MissingColumnError
from limitup_pager.loader import load_rows
from limitup_pager.pipeline import process_dataset

# --- Config ---
SETTINGS = load_settings()
configure_logging(SETTINGS)

logger = logging.getLogger("limitup_pager.api")

app = FastAPI(title="limitup-pager", version=TOOL_VERSION)

UPLOAD_PATHS = ("/api/upload",)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@app.middleware("http")
async def limit_upload_size(request: Request, call_next):
    if request.url.path in UPLOAD_PATHS and request.method.upper() == "POST":
        cl = request.headers.get("content-length")
        if cl is not None:
            try:
                too_large = int(cl) > SETTINGS.max_upload_bytes
            except ValueError:
                return _error(400, "Invalid Content-Length")
            if too_large:
                return _error(413, "Upload too large")
    return await call_next(request)


# -----------------------------
# Request logging middleware
# -----------------------------
@app.middleware("http")
async def request_logging(request: Request, call_next):
    start = time.time()
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid

    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers["X-Request-Id"] = rid
        return response

    except Exception as exc:
        logger.exception(json.dumps({
            "event": "request_exception",
            "request_id": rid,
            "method": request.method,
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "error": str(exc),
        }))
        response = _error(500, "Internal Server Error")
        response.headers["X-Request-Id"] = rid
        return response

    finally:
        duration_ms = int((time.time() - start) * 1000)
        logger.info(json.dumps({
            "event": "request",
            "request_id": rid,
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "duration_ms": duration_ms,
        }))


def parse_max_constraint(raw: Optional[str]) -> int:
    """Form value -> positive int; blank means the configured default."""
    if raw is None or not str(raw).strip():
        return SETTINGS.max_constraint
    value = int(str(raw).strip())
    if value < 1:
        raise ValueError(f"maxConstraint must be >= 1, got {value}")
    return value


def _reserve_upload_path(filename: str) -> Path:
    suffix = Path(filename).suffix.lower() or ".xlsx"
    SETTINGS.upload_dir.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(prefix="upload-", suffix=suffix, dir=SETTINGS.upload_dir)
    os.close(fd)
    return Path(name)


def _save_upload(upload: UploadFile, path: Path) -> None:
    with path.open("wb") as fh:
        shutil.copyfileobj(upload.file, fh)


def _remove_upload(path: Optional[Path]) -> None:
    if path is None:
        return
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("Failed to clean up uploaded file %s", path)


@app.post("/api/upload")
def upload(
    excelFile: Optional[UploadFile] = File(None),
    maxConstraint: Optional[str] = Form(None),
):
    if excelFile is None or not excelFile.filename:
        return _error(400, "No file uploaded.")

    try:
        max_constraint = parse_max_constraint(maxConstraint)
    except ValueError:
        return _error(400, "maxConstraint must be a positive integer.")

    tmp_path: Optional[Path] = None
    try:
        tmp_path = _reserve_upload_path(excelFile.filename)
        _save_upload(excelFile, tmp_path)
        loaded = load_rows(tmp_path)
        result = process_dataset(loaded["rows"], max_constraint, category_width=SETTINGS.category_width)
        payload = result.to_payload(preview_rows=SETTINGS.preview_rows)
        payload["warnings"] = loaded["warnings"]
        return JSONResponse(payload)
    except MissingColumnError as exc:
        return _error(400, "缺少必要列，请检查文件格式。", missing=exc.missing)
    except Exception as exc:
        logger.exception("Upload processing failed")
        return _error(500, "处理文件时发生错误: " + str(exc))
    finally:
        _remove_upload(tmp_path)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


def main() -> None:
    import uvicorn

    uvicorn.run(app, host=SETTINGS.host, port=SETTINGS.port)


if __name__ == "__main__":
    main()
