"""
Email Retry Queue

Failed notification emails are persisted to a JSON file and retried by a
background job. The queue is a plain service object: the file location and
retry policy are injected, so tests point it at a temporary directory.

Methods block on file I/O; async callers run them through asyncio.to_thread.

Entry shape:
    {
        "id": "<uuid>",
        "to_email": "student@example.com",
        "template": "admission_result",
        "data": {...},            # keyword arguments for the template
        "timestamp": "<iso>",     # when it was queued
        "last_attempt": "<iso>" | None,
        "attempts": 0,
        "max_attempts": 3,
    }
"""

import json
import logging
import threading
import uuid
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_AFTER = timedelta(minutes=5)


class EmailQueue:
    """File-backed queue of emails awaiting another delivery attempt."""

    def __init__(
        self,
        queue_file: Path,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_after: timedelta = DEFAULT_RETRY_AFTER,
    ):
        self.queue_file = Path(queue_file)
        self.max_attempts = max_attempts
        self.retry_after = retry_after
        self._lock = threading.Lock()
        self._ensure_queue_file()

    def _ensure_queue_file(self) -> None:
        self.queue_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.queue_file.exists():
            self.queue_file.write_text("[]", encoding="utf-8")

    def _load(self) -> list[dict[str, Any]]:
        try:
            return json.loads(self.queue_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read email queue {self.queue_file}: {e}")
            return []

    def _save(self, entries: list[dict[str, Any]]) -> None:
        self.queue_file.write_text(json.dumps(entries, indent=2), encoding="utf-8")

    def entries(self) -> list[dict[str, Any]]:
        """All queued entries."""
        with self._lock:
            return self._load()

    def enqueue(self, to_email: str, template: str, data: dict[str, Any]) -> str:
        """
        Queue an email for retry.

        Returns:
            The id of the new entry
        """
        entry_id = str(uuid.uuid4())
        with self._lock:
            entries = self._load()
            entries.append(
                {
                    "id": entry_id,
                    "to_email": to_email,
                    "template": template,
                    "data": data,
                    "timestamp": datetime.now(UTC).isoformat(),
                    "last_attempt": None,
                    "attempts": 0,
                    "max_attempts": self.max_attempts,
                }
            )
            self._save(entries)

        logger.info(f"Email '{template}' queued for retry (entry {entry_id})")
        return entry_id

    def due(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Entries with attempts left whose last attempt is older than retry_after."""
        now = now or datetime.now(UTC)
        due_entries = []

        for entry in self.entries():
            last = datetime.fromisoformat(entry.get("last_attempt") or entry["timestamp"])
            if entry["attempts"] < entry["max_attempts"] and now - last > self.retry_after:
                due_entries.append(entry)

        return due_entries

    def record_attempt(self, entry_id: str, success: bool) -> None:
        """
        Record a delivery attempt.

        The entry is dropped after a success or once it has used its last attempt.
        """
        with self._lock:
            entries = self._load()
            for index, entry in enumerate(entries):
                if entry["id"] != entry_id:
                    continue

                entry["attempts"] += 1
                entry["last_attempt"] = datetime.now(UTC).isoformat()

                if success:
                    entries.pop(index)
                    logger.info(f"Queued email {entry_id} delivered, removed from queue")
                elif entry["attempts"] >= entry["max_attempts"]:
                    entries.pop(index)
                    logger.error(
                        f"Queued email {entry_id} failed after {entry['attempts']} attempts, dropped"
                    )
                break

            self._save(entries)

    def remove(self, entry_id: str) -> None:
        with self._lock:
            self._save([entry for entry in self._load() if entry["id"] != entry_id])


@lru_cache
def get_email_queue() -> EmailQueue:
    """Process-wide queue built from settings."""
    return EmailQueue(settings.email_queue_file)
