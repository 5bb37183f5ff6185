"""Plain-text extraction from Word uploads.

.docx goes through python-docx. Legacy .doc (OLE compound file) is read with
olefile and decoded from the Word 97+ piece table. Formatting is discarded.
"""
from __future__ import annotations

import io
import logging
import struct
import zipfile
from typing import List, Tuple

import olefile
from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table

from ..models import ExtractionError

logger = logging.getLogger(__name__)

DOCX_MAGIC = b"PK\x03\x04"
DOC_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# Word 97+ File Information Block offsets
FIB_FLAGS = 0x000A
FIB_WHICH_TABLE = 0x0200
FIB_ENCRYPTED = 0x0100
FIB_CCP_TEXT = 0x004C
FIB_FC_CLX = 0x01A2
FIB_LCB_CLX = 0x01A6

FC_COMPRESSED = 0x40000000

FIELD_BEGIN = "\x13"
FIELD_SEPARATOR = "\x14"
FIELD_END = "\x15"

# Control characters Word stores inline in the text stream
WORD_CONTROL_MAP = {
    "\r": "\n",   # paragraph mark
    "\x07": "\t",  # cell / row mark
    "\x0b": "\n",  # manual line break
    "\x0c": "\n",  # page / section break
    "\x1e": "-",   # non-breaking hyphen
    "\x1f": "",    # optional hyphen
    "\x01": "",    # embedded object anchor
    "\x08": "",    # drawn object anchor
}


def detect_format(data: bytes) -> str:
    if data.startswith(DOCX_MAGIC):
        return "docx"
    if data.startswith(DOC_MAGIC):
        return "doc"
    return ""


def extract_text(filename: str, data: bytes) -> str:
    """Return the plain text of a .doc/.docx upload.

    The container format is decided by the byte signature rather than the
    extension, so a .docx saved with a .doc name still works.
    """
    kind = detect_format(data or b"")
    if kind == "docx":
        return extract_docx_text(data)
    if kind == "doc":
        return extract_doc_text(data)
    raise ExtractionError("Unsupported or corrupt document (not a Word file)")


# ============ .docx ============

def _table_text(table: Table) -> List[str]:
    rows: List[str] = []
    for row in table.rows:
        cells = [cell.text.strip() for cell in row.cells]
        rows.append("\t".join(cells))
    return rows


def extract_docx_text(data: bytes) -> str:
    try:
        doc = Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise ExtractionError(f"Could not read .docx: {e}") from e

    parts: List[str] = []
    for block in doc.iter_inner_content():
        if isinstance(block, Table):
            parts.extend(_table_text(block))
        else:
            parts.append(block.text)
    text = "\n".join(parts)
    logger.debug("Extracted %d characters from .docx", len(text))
    return text


# ============ .doc ============

def _u16(buf: bytes, offset: int) -> int:
    return struct.unpack_from("<H", buf, offset)[0]


def _u32(buf: bytes, offset: int) -> int:
    return struct.unpack_from("<I", buf, offset)[0]


def read_piece_table(clx: bytes) -> List[Tuple[int, int, int]]:
    """Parse a Clx blob into (cp_start, cp_end, fc) pieces."""
    pos = 0
    while pos < len(clx) and clx[pos] == 0x01:
        # Prc: skip grpprl of cbGrpprl bytes
        cb = _u16(clx, pos + 1)
        pos += 3 + cb
    if pos >= len(clx) or clx[pos] != 0x02:
        raise ExtractionError("Malformed .doc: piece table not found")

    lcb = _u32(clx, pos + 1)
    plc = clx[pos + 5:pos + 5 + lcb]
    # PlcPcd: (n + 1) CPs of 4 bytes followed by n PCDs of 8 bytes
    n = (len(plc) - 4) // 12
    if n <= 0:
        return []

    pieces = []
    for i in range(n):
        cp_start = _u32(plc, 4 * i)
        cp_end = _u32(plc, 4 * (i + 1))
        fc = _u32(plc, 4 * (n + 1) + 8 * i + 2)
        pieces.append((cp_start, cp_end, fc))
    return pieces


def decode_pieces(word_stream: bytes, pieces: List[Tuple[int, int, int]], limit: int) -> str:
    chunks: List[str] = []
    remaining = limit
    for cp_start, cp_end, fc in pieces:
        if remaining <= 0:
            break
        count = min(cp_end - cp_start, remaining)
        if count <= 0:
            continue
        if fc & FC_COMPRESSED:
            offset = (fc & ~FC_COMPRESSED) // 2
            raw = word_stream[offset:offset + count]
            chunks.append(raw.decode("cp1252", errors="replace"))
        else:
            raw = word_stream[fc:fc + 2 * count]
            chunks.append(raw.decode("utf-16-le", errors="replace"))
        remaining -= count
    return "".join(chunks)


def strip_word_controls(text: str) -> str:
    """Drop field instructions and map Word's inline control marks."""
    out: List[str] = []
    # Each open field starts in "instruction" mode until its separator
    fields: List[bool] = []
    for ch in text:
        if ch == FIELD_BEGIN:
            fields.append(True)
            continue
        if ch == FIELD_SEPARATOR:
            if fields:
                fields[-1] = False
            continue
        if ch == FIELD_END:
            if fields:
                fields.pop()
            continue
        if fields and fields[-1]:
            continue
        out.append(WORD_CONTROL_MAP.get(ch, ch))
    return "".join(out)


def text_from_streams(word_stream: bytes, table_stream_getter) -> str:
    if len(word_stream) < FIB_LCB_CLX + 4:
        raise ExtractionError("Malformed .doc: FIB too short")

    flags = _u16(word_stream, FIB_FLAGS)
    if flags & FIB_ENCRYPTED:
        raise ExtractionError("Encrypted .doc files are not supported")

    table_name = "1Table" if flags & FIB_WHICH_TABLE else "0Table"
    table_stream = table_stream_getter(table_name)

    ccp_text = _u32(word_stream, FIB_CCP_TEXT)
    fc_clx = _u32(word_stream, FIB_FC_CLX)
    lcb_clx = _u32(word_stream, FIB_LCB_CLX)
    if not lcb_clx or fc_clx + lcb_clx > len(table_stream):
        raise ExtractionError("Malformed .doc: piece table out of range")

    pieces = read_piece_table(table_stream[fc_clx:fc_clx + lcb_clx])
    raw = decode_pieces(word_stream, pieces, ccp_text)
    return strip_word_controls(raw).rstrip("\n")


def extract_doc_text(data: bytes) -> str:
    try:
        ole = olefile.OleFileIO(io.BytesIO(data))
    except (OSError, ValueError) as e:
        raise ExtractionError(f"Could not read .doc: {e}") from e

    try:
        if not ole.exists("WordDocument"):
            raise ExtractionError("Not a Word document: WordDocument stream missing")
        word_stream = ole.openstream("WordDocument").read()

        def table_stream(name: str) -> bytes:
            if not ole.exists(name):
                raise ExtractionError(f"Malformed .doc: {name} stream missing")
            return ole.openstream(name).read()

        text = text_from_streams(word_stream, table_stream)
    except struct.error as e:
        raise ExtractionError(f"Malformed .doc: {e}") from e
    finally:
        ole.close()

    logger.debug("Extracted %d characters from .doc", len(text))
    return text
