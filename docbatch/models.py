"""
Domain Models

Key Models:
- UploadFile: one uploaded document (name + raw bytes)
- BatchLimits: count/size constraints for an upload batch
- ConversionOutcome: per-file result, either PDF bytes or an error message
- FileState: lifecycle of a file as shown by the upload page

Nothing here is persisted; every request builds its own objects.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Sequence


class FileState(enum.Enum):
    PENDING = "pending"
    CONVERTING = "converting"
    SUCCESS = "success"
    ERROR = "error"


# ============ Errors ============

class ConversionError(Exception):
    """Base class for failures while converting a single file."""


class ExtractionError(ConversionError):
    """The document bytes could not be read as .doc/.docx."""


class RenderError(ConversionError):
    """Laid-out pages could not be serialized to PDF."""


class NativeConversionError(ConversionError):
    """The external converter failed or produced no PDF."""


class BatchError(Exception):
    """Failure that aborts the whole request."""

    status_code = 500


class EmptyBatchError(BatchError):
    status_code = 400

    def __init__(self, message: str = "No files provided"):
        super().__init__(message)


class BatchLimitError(BatchError):
    """A batch violates one of the configured upload limits."""

    def __init__(self, error: str, details: str, status_code: int = 400):
        super().__init__(details)
        self.error = error
        self.details = details
        self.status_code = status_code


# ============ Upload side ============

@dataclass
class UploadFile:
    name: str
    data: bytes
    size: int = field(default=-1)

    def __post_init__(self):
        if self.size < 0:
            self.size = len(self.data)


def _mb(size: int) -> str:
    return f"{size / 1024 / 1024:.2f} MB"


@dataclass(frozen=True)
class BatchLimits:
    max_files: int = 100
    max_file_size: int = 500 * 1024 * 1024
    max_total_size: int = 500 * 1024 * 1024

    @classmethod
    def from_config(cls, cfg) -> "BatchLimits":
        return cls(
            max_files=int(cfg.get("MAX_FILES", cls.max_files)),
            max_file_size=int(cfg.get("MAX_FILE_SIZE", cls.max_file_size)),
            max_total_size=int(cfg.get("MAX_TOTAL_SIZE", cls.max_total_size)),
        )

    def validate(self, files: Sequence[UploadFile]) -> None:
        """Raise BatchLimitError if the batch breaks any limit.

        Checks run in the same order as on the upload page: count, then
        per-file size, then the total.
        """
        if len(files) > self.max_files:
            raise BatchLimitError(
                "Too many files",
                f"Received {len(files)} files; maximum is {self.max_files} per batch",
            )

        oversized = [f"{f.name} ({_mb(f.size)})" for f in files if f.size > self.max_file_size]
        if oversized:
            raise BatchLimitError(
                "File too large",
                f"Files over {_mb(self.max_file_size)}: " + ", ".join(oversized),
                status_code=413,
            )

        total = sum(f.size for f in files)
        if total > self.max_total_size:
            raise BatchLimitError(
                "File too large",
                f"Total size {_mb(total)} exceeds limit of {_mb(self.max_total_size)}",
                status_code=413,
            )


# ============ Conversion side ============

@dataclass
class ConversionOutcome:
    name: str
    pdf: Optional[bytes] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, name: str, pdf: bytes) -> "ConversionOutcome":
        return cls(name=name, pdf=pdf)

    @classmethod
    def failure(cls, name: str, message: str) -> "ConversionOutcome":
        return cls(name=name, error=message or "Unknown error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def state(self) -> FileState:
        return FileState.SUCCESS if self.ok else FileState.ERROR

    def manifest_line(self) -> str:
        return f"{self.name}: {self.error}"


@dataclass
class BatchResult:
    archive: bytes
    outcomes: List[ConversionOutcome]

    @property
    def errors(self) -> List[str]:
        return [o.manifest_line() for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded
