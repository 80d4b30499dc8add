from __future__ import annotations

import json
import logging
import os
import time
import uuid

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storage_proxy.config import Settings
from storage_proxy.domain.object_store import ObjectStore, StorageError

logger = logging.getLogger("storage_proxy.api")


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()
        request.state.request_id = request_id

        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        response.headers["x-request-id"] = request_id
        logger.info(
            json.dumps(
                {
                    "request_id": request_id,
                    "method": request.method,
                    "path": str(request.url.path),
                    "status": response.status_code,
                    "elapsed_ms": elapsed_ms,
                }
            )
        )
        return response


# Room for multipart boundaries and part headers around the file itself.
_MULTIPART_OVERHEAD_BYTES = 64 * 1024


class UploadLimitMiddleware(BaseHTTPMiddleware):
    """Reject uploads whose declared length is over the limit before the form is spooled."""

    def __init__(self, app, path: str, max_body_bytes: int) -> None:
        super().__init__(app)
        self._path = path
        self._max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if request.url.path == self._path and request.method == "POST":
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self._max_body_bytes:
                return JSONResponse({"detail": "file too large"}, status_code=400)
        return await call_next(request)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> ObjectStore:
    return request.app.state.storage


def _upload_size(file: UploadFile) -> int:
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


def create_app(settings: Settings, storage: ObjectStore) -> FastAPI:
    app = FastAPI(title="Storage Proxy")
    app.state.settings = settings
    app.state.storage = storage
    app.add_middleware(
        UploadLimitMiddleware,
        path="/upload",
        max_body_bytes=settings.max_upload_bytes + _MULTIPART_OVERHEAD_BYTES,
    )
    app.add_middleware(RequestContextMiddleware)

    @app.post("/upload")
    def upload_file(
        file: UploadFile | None = File(None),
        settings: Settings = Depends(get_settings),
        storage: ObjectStore = Depends(get_storage),
    ) -> PlainTextResponse:
        if file is None or not file.filename:
            raise HTTPException(status_code=400, detail="invalid file")
        if _upload_size(file) > settings.max_upload_bytes:
            raise HTTPException(status_code=400, detail="file too large")

        try:
            storage.put_object(settings.bucket_name, file.filename, file.file)
        except StorageError as exc:
            logger.error("upload of %s failed: %s", file.filename, exc)
            raise HTTPException(status_code=400, detail="error uploading file") from exc

        logger.info("file %s uploaded successfully", file.filename)
        return PlainTextResponse("file uploaded successfully")

    @app.post("/presigned-url")
    def generate_presigned_url(
        settings: Settings = Depends(get_settings),
        storage: ObjectStore = Depends(get_storage),
    ) -> PlainTextResponse:
        key = settings.presigned_object_key
        try:
            url = storage.presigned_get_url(settings.bucket_name, key, settings.presigned_url_ttl_seconds)
        except StorageError as exc:
            logger.error("presigned url for %s failed: %s", key, exc)
            raise HTTPException(status_code=400, detail="error generating presigned url") from exc
        return PlainTextResponse(url)

    @app.delete("/delete-object")
    def delete_object(
        settings: Settings = Depends(get_settings),
        storage: ObjectStore = Depends(get_storage),
    ) -> PlainTextResponse:
        key = settings.delete_object_key
        try:
            storage.delete_object(settings.bucket_name, key)
        except StorageError as exc:
            logger.error("delete of %s failed: %s", key, exc)
            raise HTTPException(status_code=400, detail="error deleting object") from exc

        try:
            still_there = storage.object_exists(settings.bucket_name, key)
        except StorageError as exc:
            logger.warning("could not verify deletion of %s: %s", key, exc)
        else:
            logger.info("object %s deleted (still present: %s)", key, still_there)
        return PlainTextResponse("object deleted")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
