"""
API Blueprint - batch conversion endpoint

POST /api/convert takes repeated multipart "files" fields and answers with a
ZIP of PDFs. Files that fail are listed in the X-Conversion-Errors header.
"""
import json
import traceback
from typing import List

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.exceptions import RequestEntityTooLarge

from docbatch.models import BatchError, BatchLimitError, BatchLimits, EmptyBatchError, UploadFile
from docbatch.services.archive_service import ARCHIVE_FILENAME
from docbatch.services.batch import convert_batch
from docbatch.services.pipeline import PipelineSettings

api_bp = Blueprint('api', __name__)

ERRORS_HEADER = "X-Conversion-Errors"


# ============ Helper Functions ============

def read_uploads() -> List[UploadFile]:
    uploads: List[UploadFile] = []
    for storage in request.files.getlist("files"):
        filename = (getattr(storage, "filename", "") or "").strip()
        if not filename:
            continue
        data = storage.read()
        uploads.append(UploadFile(name=filename, data=data))
    return uploads


def error_response(error: str, status: int, details: str = "", exc: BaseException = None):
    body = {"error": error}
    if details:
        body["details"] = details
    if exc is not None and current_app.debug:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return jsonify(body), status


@api_bp.errorhandler(RequestEntityTooLarge)
def too_large(e):
    limit = current_app.config.get("MAX_CONTENT_LENGTH") or 0
    return error_response("File too large", 413, f"Request body exceeds {limit // (1024 * 1024)} MB")


# ============ API Routes ============

@api_bp.route("/convert", methods=["POST"])
def convert():
    log = current_app.logger
    log.info("Starting conversion process...")
    try:
        uploads = read_uploads()
        log.info("Received %d files", len(uploads))
        if not uploads:
            raise EmptyBatchError()

        BatchLimits.from_config(current_app.config).validate(uploads)

        result = convert_batch(
            uploads,
            settings=PipelineSettings.from_config(current_app.config),
            compression_level=int(current_app.config.get("ZIP_COMPRESSION_LEVEL", 6)),
        )
    except BatchLimitError as e:
        log.warning("Rejected batch: %s", e.details)
        return error_response(e.error, e.status_code, e.details)
    except EmptyBatchError as e:
        return error_response(str(e), e.status_code)
    except RequestEntityTooLarge:
        raise
    except Exception as e:
        log.exception("Conversion error")
        status = e.status_code if isinstance(e, BatchError) else 500
        return error_response("Failed to convert files", status, str(e) or type(e).__name__, exc=e)

    log.info("ZIP file generated (%d ok, %d failed)", result.succeeded, result.failed)
    errors = result.errors
    return Response(
        result.archive,
        mimetype="application/zip",
        headers={
            "Content-Disposition": f"attachment; filename={ARCHIVE_FILENAME}",
            ERRORS_HEADER: json.dumps(errors) if errors else "",
        },
    )
