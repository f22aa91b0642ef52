"""Sequential batch uploads with partial-failure semantics."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .models import BatchSummary, BatchUploadReport, FilePayload, UploadResult
from .service import DedupUploadService

_log = logging.getLogger("packetlab.attachments")


def summarize(results: Iterable[UploadResult]) -> BatchSummary:
    items = list(results)
    duplicates = sum(1 for r in items if r.is_duplicate)
    return BatchSummary(total=len(items), duplicates=duplicates, new_uploads=len(items) - duplicates)


class BatchUploader:
    """Drive DedupUploadService over many files, one at a time.

    Files are processed in input order with no internal parallelism; a failed
    file is left out of the results and does not stop the batch.
    """

    def __init__(self, service: DedupUploadService) -> None:
        self._service = service

    async def upload_all(
        self, payloads: Iterable[FilePayload], owner_id: Optional[str], *, images_only: bool = False
    ) -> BatchUploadReport:
        results: List[UploadResult] = []
        failed: List[str] = []
        for payload in payloads:
            result = await self._service.upload_attachment(payload, owner_id, images_only=images_only)
            if result is None:
                failed.append(payload.name)
            else:
                results.append(result)

        summary = summarize(results)
        if summary.duplicates > 0:
            _log.info("Upload summary: %d new, %d duplicates reused", summary.new_uploads, summary.duplicates)
        if failed:
            _log.warning("Upload summary: %d of %d files failed", len(failed), len(failed) + summary.total)
        return BatchUploadReport(results=results, failed=failed, summary=summary)

    async def upload_attachments(self, payloads: Iterable[FilePayload], owner_id: Optional[str]) -> List[UploadResult]:
        """Return the successful uploads only, in input order."""
        report = await self.upload_all(payloads, owner_id)
        return report.results


__all__ = ["BatchUploader", "summarize"]
