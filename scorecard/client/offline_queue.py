"""Durable client-side queue for evaluations created without connectivity.

Items are replayed in FIFO order by ``OfflineQueue.drain()``.  An expired
access token gets exactly one refresh exchange and one retry per item; if
that does not help, the item is parked as ``needs_reauth`` until the user
signs in again.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union
from uuid import uuid4

from pydantic import BaseModel, Field

from scorecard.core.exceptions import (
    DuplicateError,
    ForbiddenError,
    ScorecardError,
    UnauthorizedError,
    UnavailableError,
    ValidationError,
)
from scorecard.schemas.evaluation import EvaluationRequest

logger = logging.getLogger(__name__)


class QueueStatus(str, Enum):
    PENDING = "pending"
    NEEDS_REAUTH = "needs_reauth"
    FAILED = "failed"


class QueueItem(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    payload: Dict[str, Any]
    status: QueueStatus = QueueStatus.PENDING
    attempts: int = 0
    error_kind: Optional[str] = None
    error_detail: Optional[str] = None
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QueueStore(Protocol):
    def load(self) -> List[QueueItem]: ...

    def save(self, items: List[QueueItem]) -> None: ...


class EvaluationSubmitter(Protocol):
    async def create_evaluation(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def refresh(self) -> Any: ...

    def set_credentials(self, access_token: str, refresh_token: Optional[str]) -> None: ...


class JsonFileQueueStore:
    """Keeps the queue in a JSON file, replaced atomically on every save."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    def load(self) -> List[QueueItem]:
        if not self._path.exists():
            return []
        raw = json.loads(self._path.read_text(encoding="utf-8") or "[]")
        return [QueueItem.model_validate(entry) for entry in raw]

    def save(self, items: List[QueueItem]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps([item.model_dump(mode="json") for item in items], indent=2),
            encoding="utf-8",
        )
        os.replace(tmp_path, self._path)


@dataclass
class DrainReport:
    """What a single ``drain()`` call did, by item id."""

    submitted: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    needs_reauth: List[str] = field(default_factory=list)
    halted: bool = False
    skipped: bool = False


class _ReauthRequired(Exception):
    pass


class OfflineQueue:
    """FIFO replay of queued evaluations with one-shot credential refresh.

    Per item:

    - success, or a duplicate response, removes the item;
    - ``UnauthorizedError`` triggers one refresh and one retry; if either
      fails the item becomes ``needs_reauth`` and the drain moves on
      to the next item;
    - ``UnavailableError`` (or any transport failure) leaves the item
      ``pending`` and stops the drain;
    - ``ValidationError`` / ``ForbiddenError`` mark the item ``failed``
      and the drain moves on.

    Only one drain runs at a time; a concurrent call returns immediately
    with ``skipped=True``.
    """

    def __init__(self, client: EvaluationSubmitter, store: QueueStore) -> None:
        self._client = client
        self._store = store
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Queue contents
    # ------------------------------------------------------------------

    def enqueue(self, request: Union[EvaluationRequest, Dict[str, Any]]) -> QueueItem:
        if isinstance(request, EvaluationRequest):
            payload = request.model_dump(mode="json")
        else:
            payload = dict(request)
        item = QueueItem(payload=payload)
        items = self._store.load()
        items.append(item)
        self._store.save(items)
        logger.info("Queued evaluation %s for later submission", item.id)
        return item

    def items(self) -> List[QueueItem]:
        return self._store.load()

    def pending_count(self) -> int:
        return sum(1 for item in self._store.load() if item.status == QueueStatus.PENDING)

    def reauthenticate(self, access_token: str, refresh_token: Optional[str]) -> int:
        """Install new credentials and return parked items to ``pending``.

        Returns the number of items that were reset.
        """
        self._client.set_credentials(access_token, refresh_token)
        items = self._store.load()
        reset = 0
        for item in items:
            if item.status == QueueStatus.NEEDS_REAUTH:
                item.status = QueueStatus.PENDING
                item.error_kind = None
                item.error_detail = None
                reset += 1
        self._store.save(items)
        logger.info("Re-authenticated; %d queued item(s) resumed", reset)
        return reset

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    async def drain(self) -> DrainReport:
        if self._lock.locked():
            logger.info("Drain already in progress")
            return DrainReport(skipped=True)

        async with self._lock:
            report = DrainReport()
            snapshot = [
                item for item in self._store.load() if item.status == QueueStatus.PENDING
            ]
            for item in snapshot:
                if not await self._process(item, report):
                    report.halted = True
                    break

            logger.info(
                "Drain finished: %d submitted, %d duplicate, %d failed, %d need re-auth",
                len(report.submitted),
                len(report.duplicates),
                len(report.failed),
                len(report.needs_reauth),
            )
            return report

    async def _process(self, item: QueueItem, report: DrainReport) -> bool:
        """Replay one item; return ``False`` if the drain must stop."""
        item.attempts += 1
        try:
            result = await self._submit_with_refresh(item)
        except DuplicateError:
            self._remove(item.id)
            report.duplicates.append(item.id)
            return True
        except _ReauthRequired as exc:
            self._mark(item, QueueStatus.NEEDS_REAUTH, UnauthorizedError.kind, str(exc))
            report.needs_reauth.append(item.id)
            logger.warning("Queued evaluation %s needs re-authentication", item.id)
            return True
        except UnavailableError as exc:
            self._mark(item, QueueStatus.PENDING, exc.kind, exc.detail)
            logger.warning("Connectivity lost while replaying %s: %s", item.id, exc.detail)
            return False
        except (ValidationError, ForbiddenError) as exc:
            self._mark(item, QueueStatus.FAILED, exc.kind, exc.detail)
            report.failed.append(item.id)
            logger.warning("Queued evaluation %s rejected (%s): %s", item.id, exc.kind, exc.detail)
            return True

        self._remove(item.id)
        if result.get("duplicate"):
            report.duplicates.append(item.id)
        else:
            report.submitted.append(item.id)
        return True

    async def _submit_with_refresh(self, item: QueueItem) -> Dict[str, Any]:
        try:
            return await self._client.create_evaluation(item.payload)
        except UnauthorizedError:
            logger.info("Credentials expired while replaying %s; refreshing once", item.id)

        try:
            await self._client.refresh()
        except UnavailableError:
            raise
        except ScorecardError as exc:
            raise _ReauthRequired(exc.detail)

        try:
            return await self._client.create_evaluation(item.payload)
        except UnauthorizedError as exc:
            raise _ReauthRequired(exc.detail)

    # ------------------------------------------------------------------
    # Store updates
    # ------------------------------------------------------------------

    def _remove(self, item_id: str) -> None:
        items = [item for item in self._store.load() if item.id != item_id]
        self._store.save(items)

    def _mark(
        self,
        target: QueueItem,
        status: QueueStatus,
        error_kind: Optional[str],
        error_detail: Optional[str],
    ) -> None:
        items = self._store.load()
        for item in items:
            if item.id == target.id:
                item.status = status
                item.attempts = target.attempts
                item.error_kind = error_kind
                item.error_detail = error_detail
        self._store.save(items)
