"""
Backend Relay

Flask application that accepts chunk uploads and streams them to Google
Drive. Stateless: every request is an independent pass-through.

Routes:
    GET  /        liveness probe (hosted platforms poll it, clients use it
                  to wake a sleeping instance)
    POST /upload  multipart form: binary under "chunk", name under "filename"
"""

import logging
import time
from typing import Optional

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from backend.constants import (
    ERROR_MISSING_FOLDER,
    ERROR_NO_FILE,
    ERROR_TOO_LARGE,
    ERROR_UPLOAD_FAILED,
    FALLBACK_NAME_FORMAT,
    LIVENESS_MESSAGE,
    UPLOAD_MIME_TYPE,
)
from backend.factory import create_storage
from backend.interfaces.storage_interface import RemoteStorageInterface
from config.settings import (
    CORS_ORIGIN,
    DRIVE_FOLDER_ID,
    MAX_UPLOAD_BYTES,
    UPLOAD_FIELD_CHUNK,
    UPLOAD_FIELD_FILENAME,
    UPLOAD_ROUTE,
)
from core.constants import (
    CONFIGURATION_FAULT_CODE,
    RESPONSE_FILE_ID_KEY,
    RESPONSE_LINK_KEY,
)

logger = logging.getLogger(__name__)

STORAGE_EXTENSION = "chunk_storage"


def create_app(
    storage: Optional[RemoteStorageInterface] = None,
    folder_id: Optional[str] = DRIVE_FOLDER_ID,
    cors_origin: str = CORS_ORIGIN,
    max_upload_bytes: int = MAX_UPLOAD_BYTES,
) -> Flask:
    """
    Build the relay application.

    Args:
        storage: Remote storage (default: from StorageFactory auto mode)
        folder_id: Destination Drive folder; empty means misconfigured
        cors_origin: Allowed browser origin
        max_upload_bytes: Request body limit, larger bodies get 413

    Example:
        app = create_app(storage=MockDriveStorage(), folder_id="test-folder")
        app.test_client().get("/")
    """
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = max_upload_bytes
    app.config["DRIVE_FOLDER_ID"] = folder_id or ""
    app.extensions[STORAGE_EXTENSION] = storage or create_storage()

    CORS(app, origins=cors_origin)

    app.add_url_rule("/", "liveness", liveness, methods=["GET"])
    app.add_url_rule(UPLOAD_ROUTE, "upload_chunk", upload_chunk, methods=["POST"])
    app.register_error_handler(RequestEntityTooLarge, payload_too_large)

    logger.info(
        f"Backend relay ready (folder configured: {bool(folder_id)}, "
        f"limit: {max_upload_bytes // (1024 * 1024)} MB)",
    )
    return app


def liveness():
    return LIVENESS_MESSAGE


def upload_chunk():
    chunk = request.files.get(UPLOAD_FIELD_CHUNK)
    if chunk is None:
        return jsonify({"error": ERROR_NO_FILE}), 400

    folder_id = current_app.config["DRIVE_FOLDER_ID"]
    if not folder_id:
        logger.error("FOLDER_ID is not set, rejecting upload")
        return (
            jsonify({"error": ERROR_MISSING_FOLDER, "code": CONFIGURATION_FAULT_CODE}),
            500,
        )

    name = request.form.get(UPLOAD_FIELD_FILENAME) or FALLBACK_NAME_FORMAT.format(
        timestamp_ms=int(time.time() * 1000),
    )
    storage: RemoteStorageInterface = current_app.extensions[STORAGE_EXTENSION]

    try:
        stored = storage.create_file(name, chunk.stream, UPLOAD_MIME_TYPE, folder_id)
    except Exception as e:
        # StorageError, CredentialsError or anything the client library raised
        logger.error(f"Upload Error: {e}")
        return jsonify({"error": ERROR_UPLOAD_FAILED, "details": str(e)}), 500

    logger.info(f"Uploaded: {stored.name} ({stored.file_id})")
    return jsonify(
        {
            "success": True,
            RESPONSE_FILE_ID_KEY: stored.file_id,
            RESPONSE_LINK_KEY: stored.link,
        },
    )


def payload_too_large(error: RequestEntityTooLarge):
    limit = current_app.config["MAX_CONTENT_LENGTH"]
    logger.warning(f"Rejected upload above {limit} bytes")
    return (
        jsonify({"error": ERROR_TOO_LARGE, "details": f"Limit is {limit} bytes"}),
        413,
    )
