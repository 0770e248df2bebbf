"""Hand-off of finished scans to persistence and notification services."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .models import ScanResult
from .utils import DEFAULT_LOGGER_NAME

logger = logging.getLogger(DEFAULT_LOGGER_NAME).getChild("publish")


@dataclass(frozen=True)
class AnalysisRecord:
    analysis_id: str
    result: ScanResult
    user_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis_id": self.analysis_id,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat(),
            "result": self.result.to_dict(),
        }


class ResultStore(Protocol):
    """Persists analysis records keyed by analysis id."""

    def save(self, record: AnalysisRecord) -> None:
        """Store ``record``; raising aborts the publish."""


class Notifier(Protocol):
    """Told when an analysis has completed."""

    def analysis_complete(self, record: AnalysisRecord, finding_count: int) -> None:
        """Deliver a completion notice."""


def publish_result(
    result: ScanResult,
    store: ResultStore,
    notifier: Optional[Notifier] = None,
    user_id: Optional[str] = None,
) -> AnalysisRecord:
    record = AnalysisRecord(analysis_id=str(uuid.uuid4()), result=result, user_id=user_id)
    store.save(record)
    logger.info("Stored analysis %s (%d finding(s))", record.analysis_id, result.summary.total)
    if notifier is not None:
        try:
            notifier.analysis_complete(record, result.summary.total)
        except Exception as exc:
            logger.warning("Notification for analysis %s failed: %s", record.analysis_id, exc)
    return record


class JsonResultStore:
    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, analysis_id: str) -> Path:
        return self.directory / f"{analysis_id}.json"

    def save(self, record: AnalysisRecord) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path_for(record.analysis_id).write_text(json.dumps(record.to_dict(), indent=2))

    def load(self, analysis_id: str) -> Dict[str, Any]:
        return json.loads(self.path_for(analysis_id).read_text())


class LogNotifier:
    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.logger = log or logger

    def analysis_complete(self, record: AnalysisRecord, finding_count: int) -> None:
        self.logger.info(
            "Analysis %s complete: %d finding(s)%s",
            record.analysis_id,
            finding_count,
            f" for user {record.user_id}" if record.user_id else "",
        )
