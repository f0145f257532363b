#!/usr/bin/env python3
"""
C2PA Web Server - upload, read, sign and verify Content Credentials.

A thin HTTP layer over c2pa-python. Uploaded images live in a flat temp
directory under opaque identifiers; every other route refers to them by
that identifier.

Usage:
    # Start the server
    c2pa-web serve

    # Or with uvicorn directly
    uvicorn c2pa_web.server:app --host 127.0.0.1 --port 3001

Endpoints:
    GET  /                     - Browser UI
    GET  /api/status           - Health check
    POST /api/c2pa/upload      - Upload an image (multipart)
    POST /api/c2pa/read        - Read the embedded manifest
    POST /api/c2pa/sign        - Sign with the test signer or your own credentials
    POST /api/c2pa/verify      - Classify the manifest's validation results
    GET  /api/temp/{fileId}    - Serve a stored file
    GET  /api/download?file=   - Download a stored file as an attachment
"""

from __future__ import annotations

import logging
import time
from pathlib import PurePath
from typing import Optional

from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from c2pa_web import __version__
from c2pa_web.config import Settings
from c2pa_web.errors import (
    C2PAWebError,
    ExternalServiceFailure,
    InternalFailure,
    InvalidIdentifier,
    InvalidInput,
    RequestTooLarge,
)
from c2pa_web.mime import DEFAULT_REGISTRY, MimeRegistry
from c2pa_web.models import (
    ErrorResponse,
    FileRequest,
    ReadResponse,
    SignRequest,
    SignResponse,
    StatusResponse,
    UploadResponse,
)
from c2pa_web.provenance import C2PAService, build_manifest_definition
from c2pa_web.signers import LocalSigner, choose_signer, validate_local_credentials
from c2pa_web.storage import SIGNED_PREFIX, TempStorage, sanitize_filename
from c2pa_web.ui import render_index
from c2pa_web.verification import no_manifest_result, summarize_manifest_store

logger = logging.getLogger("c2pa-web")


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the server process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def error_response(error: C2PAWebError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(error=error.message).model_dump(),
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        message = err.get("msg", "invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return "Invalid request: " + "; ".join(problems) if problems else "Invalid request."


# =============================================================================
# FastAPI Application
# =============================================================================


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[TempStorage] = None,
    registry: Optional[MimeRegistry] = None,
    service: Optional[C2PAService] = None,
) -> FastAPI:
    """
    Assemble the application with explicit collaborators.

    Args:
        settings: Runtime settings (default: read from the environment)
        storage: Temp-file storage (default: rooted at settings.temp_dir)
        registry: MIME registry (default: DEFAULT_REGISTRY)
        service: C2PA library boundary (default: C2PAService)
    """
    settings = settings or Settings.from_env()
    registry = registry or DEFAULT_REGISTRY
    storage = storage or TempStorage(settings.temp_dir)
    service = service or C2PAService(settings, registry)

    app = FastAPI(
        title="C2PA Web",
        description="Read, sign and verify C2PA Content Credentials in images",
        version=__version__,
    )
    app.state.settings = settings
    app.state.storage = storage
    app.state.registry = registry
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > settings.max_request_size:
            logger.warning(f"Rejected {request.url.path}: body of {length} bytes")
            return error_response(
                RequestTooLarge(
                    f"Request body is too large (limit {settings.max_request_size} bytes)."
                )
            )
        return await call_next(request)

    @app.exception_handler(C2PAWebError)
    async def handle_service_error(request: Request, exc: C2PAWebError):
        if exc.status_code < 500:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        error = InvalidInput(_describe_validation_error(exc))
        logger.warning(f"{request.method} {request.url.path} -> 400: {error.message}")
        return error_response(error)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return error_response(InternalFailure())

    def absolute_url(request: Request, path: str) -> str:
        return settings.build_url(str(request.base_url), path)

    def require_mime_type(identifier: str) -> str:
        mime_type = registry.lookup(identifier)
        if not mime_type:
            raise InvalidInput("Unsupported file format.")
        return mime_type

    # =========================================================================
    # Endpoints
    # =========================================================================

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index():
        return render_index(registry, settings.max_upload_size)

    @app.get("/api/status", response_model=StatusResponse)
    async def get_status():
        """Health check endpoint."""
        return StatusResponse(
            status="ok",
            version=__version__,
            c2paAvailable=service.available,
            c2paVersion=service.sdk_version(),
            supportedTypes=registry.supported_types,
            maxUploadSize=settings.max_upload_size,
        )

    @app.post("/api/c2pa/upload", response_model=UploadResponse)
    async def upload_file(request: Request, file: Optional[UploadFile] = File(None)):
        """Store an uploaded image and return its file ID."""
        if file is None or not file.filename:
            raise InvalidInput("No file was uploaded.")

        try:
            data = await file.read(settings.max_upload_size + 1)
        finally:
            await file.close()

        if len(data) > settings.max_upload_size:
            raise InvalidInput(
                f"The file is too large. Please choose a file of at most "
                f"{settings.max_upload_size_mb:g}MB."
            )

        mime_type = (file.content_type or "").lower()
        if not registry.is_supported(mime_type):
            raise InvalidInput(
                f"Unsupported file type. Please choose one of: {registry.describe()}."
            )

        try:
            file_name = sanitize_filename(file.filename)
            extension = PurePath(file_name).suffix.lower()
            # The declared type wins over a missing or mismatched extension
            if registry.lookup(extension) != mime_type:
                extension = registry.extension_for(mime_type)

            file_id = storage.save(data, extension)
        except C2PAWebError:
            raise
        except Exception as e:
            logger.exception(f"Upload failed: {e}")
            raise InternalFailure("An error occurred while uploading the file.") from e

        logger.info(f"Uploaded {file_name} ({len(data)} bytes, {mime_type}) as {file_id}")

        return UploadResponse(
            fileId=file_id,
            fileName=file_name,
            fileType=mime_type,
            fileSize=len(data),
            url=absolute_url(request, f"/api/temp/{file_id}"),
        )

    @app.post("/api/c2pa/read", response_model=ReadResponse)
    def read_manifest(body: FileRequest):
        """Return the embedded manifest store, if any."""
        ref = storage.locate(body.file_id)
        mime_type = require_mime_type(ref.identifier)

        try:
            store = service.read(ref.path, mime_type)
        except ExternalServiceFailure as e:
            # Unreadable data is reported like absent data, with the reason attached
            logger.warning(f"Treating {ref.identifier} as having no C2PA data: {e.message}")
            return ReadResponse(hasC2pa=False, readError=e.message)
        except C2PAWebError:
            raise
        except Exception as e:
            logger.exception(f"C2PA read failed: {e}")
            raise InternalFailure("An error occurred while reading C2PA data.") from e

        if store is None:
            return ReadResponse(hasC2pa=False)
        return ReadResponse(hasC2pa=True, manifest=store, summary=summarize_manifest_store(store))

    @app.post("/api/c2pa/sign", response_model=SignResponse)
    def sign_file(body: SignRequest, request: Request):
        """Sign a stored image and return the ID of the signed copy."""
        storage.resolve(body.file_id)

        if body.manifest_data is None:
            raise InvalidInput("Invalid manifest data.")

        signer = choose_signer(body.use_local_signer, body.certificate, body.private_key)
        if isinstance(signer, LocalSigner):
            validate_local_credentials(signer)

        source = storage.locate(body.file_id)
        mime_type = require_mime_type(source.identifier)

        output_id = storage.new_identifier(source.extension, prefix=SIGNED_PREFIX)
        manifest = build_manifest_definition(
            body.manifest_data, mime_type, default_title=source.identifier
        )

        try:
            service.sign(source.path, storage.resolve(output_id), manifest, signer, mime_type)
        except C2PAWebError:
            raise
        except Exception as e:
            logger.exception(f"Signing failed: {e}")
            raise InternalFailure("An error occurred while signing the file.") from e

        logger.info(f"Signed {source.identifier} as {output_id} ({signer.kind} signer)")

        return SignResponse(
            fileId=output_id,
            downloadUrl=absolute_url(request, f"/api/download?file={output_id}"),
            url=absolute_url(request, f"/api/temp/{output_id}"),
            signer=signer.kind,
        )

    @app.post("/api/c2pa/verify")
    def verify_file(body: FileRequest):
        """Classify the validation results of the embedded manifest."""
        ref = storage.locate(body.file_id)
        mime_type = require_mime_type(ref.identifier)

        try:
            result = service.verify(ref.path, mime_type)
        except ExternalServiceFailure as e:
            logger.warning(f"Treating {ref.identifier} as having no C2PA data: {e.message}")
            result = no_manifest_result([f"The C2PA data could not be read: {e.message}"])
        except C2PAWebError:
            raise
        except Exception as e:
            logger.exception(f"C2PA verification failed: {e}")
            raise InternalFailure("An error occurred while verifying C2PA data.") from e

        details = result.to_dict()
        is_valid = details.pop("isValid")
        return {
            "success": True,
            "hasC2pa": result.has_manifest,
            "isValid": is_valid,
            "validationDetails": details,
        }

    @app.get("/api/temp/{file_id:path}")
    def serve_temp_file(file_id: str):
        """Serve a stored file for preview."""
        ref = storage.locate(file_id)
        return FileResponse(
            ref.path,
            media_type=registry.content_type(ref.identifier),
            headers={"Cache-Control": "public, max-age=300"},
        )

    @app.get("/api/download")
    def download_file(file: Optional[str] = Query(None)):
        """Download a stored file as an attachment."""
        if not file:
            raise InvalidIdentifier("Invalid file name.")
        ref = storage.locate(file)
        download_name = f"c2pa_signed_{int(time.time() * 1000)}{ref.extension}"
        return FileResponse(
            ref.path,
            media_type=registry.content_type(ref.identifier),
            filename=download_name,
        )

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================


def main():
    """Run the server."""
    import uvicorn

    settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info(f"C2PA Web {__version__} listening on http://{settings.host}:{settings.port}")
    logger.info(f"Temp directory: {settings.temp_dir}")
    logger.info(f"Configuration: {settings.summary()}")

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
