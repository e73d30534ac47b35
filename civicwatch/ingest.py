from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from .errors import FetchError, StorageError, ValidationError
from .models import RawItem, parse_raw_item
from .news_store import NewsStore, UpsertResult

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    def fetch(self) -> List[RawItem]: ...


def _utc_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()


@dataclass
class IngestReport:
    started_at: str = field(default_factory=_utc_iso)
    finished_at: Optional[str] = None
    fetched: int = 0
    inserted: int = 0
    already_present: int = 0
    invalid: int = 0
    failed: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.failed == 0

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["ok"] = self.ok
        return out


class NewsIngestor:
    """One ingestion tick: fetch, normalize, insert-if-absent each item.

    Fetch and storage failures are recorded on the report instead of raised.
    A fetch failure ends the tick; a bad or unstorable item is logged and skipped.
    """

    def __init__(self, fetcher: Fetcher, store: NewsStore, commit_every: int = 25):
        self.fetcher = fetcher
        self.store = store
        self.commit_every = max(1, int(commit_every))
        self.last_report: Optional[IngestReport] = None
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def run(self) -> IngestReport:
        with self._lock:
            return self._run()

    def run_if_idle(self) -> Optional[IngestReport]:
        if not self._lock.acquire(blocking=False):
            logger.info("ingest skipped: previous run still in progress")
            return None
        try:
            return self._run()
        finally:
            self._lock.release()

    def _run(self) -> IngestReport:
        report = IngestReport()
        try:
            self._ingest(report)
        except FetchError as e:
            report.error = str(e)
            logger.warning("ingest fetch failed: %s", e)
        except StorageError as e:
            report.error = str(e)
            logger.error("ingest aborted, storage unavailable: %s", e)
        report.finished_at = _utc_iso()
        self.last_report = report
        logger.info(
            "ingest done fetched=%d inserted=%d already_present=%d invalid=%d failed=%d error=%s",
            report.fetched, report.inserted, report.already_present, report.invalid, report.failed, report.error,
        )
        return report

    def _ingest(self, report: IngestReport) -> None:
        items = self.fetcher.fetch()
        report.fetched = len(items)
        if not items:
            return

        with self.store.session() as con:
            pending = 0
            try:
                for raw in items:
                    try:
                        record = parse_raw_item(raw)
                    except ValidationError as e:
                        report.invalid += 1
                        logger.warning("skip item: %s", e)
                        continue

                    try:
                        result = self.store.upsert_if_absent(record, con)
                    except StorageError as e:
                        report.failed += 1
                        logger.warning("store failed id=%s: %s", record.id, e)
                        continue

                    if result is UpsertResult.INSERTED:
                        report.inserted += 1
                    else:
                        report.already_present += 1
                    pending += 1

                    if pending >= self.commit_every:
                        con.commit()
                        pending = 0
            finally:
                if pending:
                    con.commit()
