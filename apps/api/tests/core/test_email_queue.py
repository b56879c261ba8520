"""
Unit tests for the email retry queue and templated sending.
"""

import json
import threading
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.core.email import process_email_queue, send_templated_email
from app.core.email_queue import EmailQueue

CONFIRMATION = {"student_name": "Ana Cruz", "application_id": "app-1"}


@pytest.fixture
def queue(tmp_path):
    return EmailQueue(tmp_path / "data" / "email-queue.json", max_attempts=2)


class TestEmailQueue:
    """Tests for the file-backed EmailQueue."""

    def test_creates_empty_queue_file(self, tmp_path):
        path = tmp_path / "nested" / "queue.json"

        EmailQueue(path)

        assert json.loads(path.read_text()) == []

    def test_enqueue_persists_entry(self, queue):
        entry_id = queue.enqueue("a@x.com", "submission_confirmation", CONFIRMATION)

        reloaded = EmailQueue(queue.queue_file)
        [entry] = reloaded.entries()
        assert entry["id"] == entry_id
        assert entry["attempts"] == 0
        assert entry["max_attempts"] == 2
        assert entry["data"] == CONFIRMATION

    def test_due_respects_retry_interval(self, queue):
        queue.enqueue("a@x.com", "submission_confirmation", CONFIRMATION)

        assert queue.due() == []
        assert len(queue.due(now=datetime.now(UTC) + timedelta(minutes=6))) == 1

    def test_success_removes_entry(self, queue):
        entry_id = queue.enqueue("a@x.com", "submission_confirmation", CONFIRMATION)

        queue.record_attempt(entry_id, success=True)

        assert queue.entries() == []

    def test_entry_dropped_after_max_attempts(self, queue):
        entry_id = queue.enqueue("a@x.com", "submission_confirmation", CONFIRMATION)

        queue.record_attempt(entry_id, success=False)
        assert queue.entries()[0]["attempts"] == 1

        queue.record_attempt(entry_id, success=False)
        assert queue.entries() == []

    def test_corrupt_file_reads_as_empty(self, queue):
        queue.queue_file.write_text("{not json")

        assert queue.entries() == []


class TestSendTemplatedEmail:
    @pytest.mark.asyncio
    async def test_failed_send_is_queued(self, queue):
        with patch("app.core.email.send_email", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = False

            sent = await send_templated_email(
                "a@x.com", "submission_confirmation", CONFIRMATION, queue=queue
            )

            subject = mock_send.await_args.args[1]
            assert subject.startswith("Application Submitted")

        assert sent is False
        assert queue.entries()[0]["template"] == "submission_confirmation"

    @pytest.mark.asyncio
    async def test_successful_send_is_not_queued(self, queue):
        with patch("app.core.email.send_email", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = True

            sent = await send_templated_email(
                "a@x.com",
                "admission_result",
                {"student_name": "Ana", "status": "admitted", "course": "BSN"},
                queue=queue,
            )

        assert sent is True
        assert queue.entries() == []


class TestProcessEmailQueue:
    @pytest.mark.asyncio
    async def test_retries_due_entries(self, queue):
        delivered = queue.enqueue("a@x.com", "submission_confirmation", CONFIRMATION)
        failing = queue.enqueue("b@x.com", "submission_confirmation", CONFIRMATION)
        later = datetime.now(UTC) + timedelta(minutes=10)

        with (
            patch.object(queue, "due", return_value=queue.entries()),
            patch("app.core.email.send_email", new_callable=AsyncMock) as mock_send,
        ):
            mock_send.side_effect = lambda to, subject, html: to == "a@x.com"

            results = await process_email_queue(queue)

        assert results == {"processed": 2, "sent": 1, "failed": 1}
        remaining = queue.entries()
        assert [e["id"] for e in remaining] == [failing]
        assert delivered not in [e["id"] for e in remaining]
        assert queue.due(now=later) == remaining


class TestQueueFileAccessOffEventLoop:
    """Queue file reads and writes run in worker threads."""

    @pytest.mark.asyncio
    async def test_enqueue_and_retry_run_off_loop_thread(self, queue):
        loop_thread = threading.get_ident()
        calls: dict[str, int] = {}

        def recording(name, method):
            def wrapper(*args, **kwargs):
                calls[name] = threading.get_ident()
                return method(*args, **kwargs)

            return wrapper

        with (
            patch.object(queue, "enqueue", recording("enqueue", queue.enqueue)),
            patch.object(queue, "due", recording("due", queue.entries)),
            patch.object(
                queue, "record_attempt", recording("record_attempt", queue.record_attempt)
            ),
            patch("app.core.email.send_email", new_callable=AsyncMock, return_value=False),
        ):
            await send_templated_email(
                "a@x.com", "submission_confirmation", CONFIRMATION, queue=queue
            )
            await process_email_queue(queue)

        assert set(calls) == {"enqueue", "due", "record_attempt"}
        assert loop_thread not in calls.values()
        assert queue.entries()[0]["attempts"] == 1
