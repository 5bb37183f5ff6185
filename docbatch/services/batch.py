"""Batch orchestration: convert every upload, then package the results."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

from ..models import BatchResult, ConversionOutcome, EmptyBatchError, UploadFile
from .archive_service import ArchiveWriter, pdf_name_for
from .pipeline import PipelineSettings, convert_file

logger = logging.getLogger(__name__)


def convert_batch(
    files: Sequence[UploadFile],
    settings: PipelineSettings = None,
    compression_level: int = 6,
) -> BatchResult:
    """Convert files one at a time, in order, into a single ZIP.

    Each PDF is compressed into the archive as soon as it is produced and the
    outcome keeps no copy of it. Per-file failures end up in
    ``BatchResult.errors``; anything raised here is a batch-level failure.
    """
    if not files:
        raise EmptyBatchError()

    outcomes: List[ConversionOutcome] = []
    total = len(files)
    with ArchiveWriter(compression_level) as writer:
        for i, upload in enumerate(files, start=1):
            logger.info("Processing file %d/%d: %s", i, total, upload.name)
            outcome = convert_file(upload, settings)
            if outcome.ok:
                writer.add(pdf_name_for(upload.name), outcome.pdf)
                outcome = replace(outcome, pdf=None)
                logger.info("Successfully converted %s", upload.name)
            else:
                logger.warning("Conversion failed for %s: %s", upload.name, outcome.error)
            outcomes.append(outcome)

        logger.info("Generating ZIP file with %d successful conversions...", len(writer.names))
        archive = writer.getvalue()

    return BatchResult(archive=archive, outcomes=outcomes)
