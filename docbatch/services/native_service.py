"""LibreOffice conversion.

Runs a headless soffice per document. The output keeps the original layout,
fonts, images and tables, so no sanitizing or redrawing happens here.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile

from ..models import NativeConversionError

logger = logging.getLogger(__name__)


def soffice_ready(binary: str = "soffice"):
    path = shutil.which(binary)
    if not path:
        return False, f"{binary} not found on PATH"
    return True, path


def convert_with_libreoffice(filename: str, data: bytes, binary: str = "soffice", timeout: int = 300) -> bytes:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext not in (".doc", ".docx"):
        ext = ".docx"

    with tempfile.TemporaryDirectory(prefix="docbatch_") as tmpdir:
        input_path = os.path.join(tmpdir, f"input{ext}")
        with open(input_path, "wb") as f:
            f.write(data)

        # Isolated profile per call
        profile = f"-env:UserInstallation=file://{os.path.join(tmpdir, 'profile')}"
        cmd = [binary, profile, "--headless", "--convert-to", "pdf", "--outdir", tmpdir, input_path]
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except FileNotFoundError as e:
            raise NativeConversionError(f"LibreOffice not available: {binary}") from e
        except subprocess.TimeoutExpired as e:
            raise NativeConversionError(f"LibreOffice timed out after {timeout}s") from e

        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            raise NativeConversionError(f"LibreOffice failed ({proc.returncode}): {detail}")

        output_path = os.path.join(tmpdir, "input.pdf")
        if not os.path.exists(output_path):
            raise NativeConversionError("LibreOffice produced no PDF")
        with open(output_path, "rb") as f:
            return f.read()
