"""ZIP packaging of converted PDFs."""
from __future__ import annotations

import io
import os
import re
import zipfile
from typing import Dict

ARCHIVE_FOLDER = "converted-pdfs"
ARCHIVE_FILENAME = "converted-pdfs.zip"

_WORD_EXT_RE = re.compile(r"\.docx?$", re.IGNORECASE)


def pdf_name_for(filename: str) -> str:
    """'Report.DOCX' -> 'Report.pdf'. Directory parts are dropped."""
    base = os.path.basename((filename or "").replace("\\", "/")) or "document"
    if _WORD_EXT_RE.search(base):
        return _WORD_EXT_RE.sub(".pdf", base)
    return base + ".pdf"


class ArchiveWriter:
    """In-memory ZIP with every entry under ARCHIVE_FOLDER/.

    Repeated names get " (2)", " (3)" suffixes instead of duplicate entries.
    """

    def __init__(self, compression_level: int = 6):
        self._buf = io.BytesIO()
        self._zip = zipfile.ZipFile(
            self._buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=compression_level
        )
        self._zip.writestr(ARCHIVE_FOLDER + "/", b"")
        self._taken: Dict[str, int] = {}
        self.names = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _unique(self, name: str) -> str:
        key = name.lower()
        if key not in self._taken:
            self._taken[key] = 1
            return name
        stem, ext = os.path.splitext(name)
        while True:
            self._taken[key] += 1
            candidate = f"{stem} ({self._taken[key]}){ext}"
            if candidate.lower() not in self._taken:
                self._taken[candidate.lower()] = 1
                return candidate

    def add(self, name: str, data: bytes) -> str:
        name = self._unique(name)
        self._zip.writestr(f"{ARCHIVE_FOLDER}/{name}", data)
        self.names.append(name)
        return name

    def close(self) -> None:
        if self._zip.fp is not None:
            self._zip.close()

    def getvalue(self) -> bytes:
        self.close()
        return self._buf.getvalue()
