"""
test_metrics.py - Metrics registry, structured log records and auth state.
"""

import asyncio
import json
import logging

import pytest

from jobtrack_sync.auth import InMemoryAuthProvider
from jobtrack_sync.metrics import (
    JSONFormatter,
    MetricsRegistry,
    SyncLogger,
    get_registry,
    sync_runs_total,
)


class TestRegistry:
    def test_counter_labels_are_independent(self):
        registry = MetricsRegistry(prefix="test")
        pushed = registry.counter("pushed_total", "Rows pushed", labels=["kind"])

        pushed.inc(kind="tasks")
        pushed.inc(2, kind="tasks")
        pushed.inc(kind="contacts")

        assert pushed.name == "test_pushed_total"
        assert pushed.get(kind="tasks") == 3
        assert pushed.get(kind="contacts") == 1
        assert pushed.get(kind="interviews") == 0

    def test_counter_rejects_negative(self):
        counter = MetricsRegistry(prefix="test").counter("c_total", "c")
        with pytest.raises(ValueError):
            counter.inc(-1)

    def test_same_name_returns_same_metric(self):
        registry = MetricsRegistry(prefix="test")
        assert registry.gauge("pending", "p") is registry.gauge("pending", "p")

    def test_histogram_buckets(self):
        registry = MetricsRegistry(prefix="test")
        duration = registry.histogram("seconds", "s", buckets=(0.1, 1.0, float("inf")))

        duration.observe(0.05)
        duration.observe(0.5)

        buckets = {
            v.labels["le"]: v.value for v in duration.collect() if v.name.endswith("_bucket")
        }
        assert duration.count() == 2
        assert buckets == {"0.1": 1, "1.0": 2, "+Inf": 2}

    def test_prometheus_export(self):
        registry = MetricsRegistry(prefix="test")
        registry.gauge("pending_rows", "Rows waiting", labels=["kind"]).set(4, kind="tasks")

        text = registry.export_prometheus()

        assert "# HELP test_pending_rows Rows waiting" in text
        assert "# TYPE test_pending_rows gauge" in text
        assert 'test_pending_rows{kind="tasks"} 4' in text

    def test_sync_metrics_registered(self):
        names = get_registry().export_prometheus()
        assert "jobtrack_sync_runs_total" in names
        assert "jobtrack_sync_rows_pushed_total" in names
        assert "jobtrack_sync_pending_rows" in names


class TestSyncLogger:
    def test_completed_event_counts_success(self, caplog):
        before = sync_runs_total.get(result="success")

        with caplog.at_level(logging.INFO, logger="jobtrack_sync.sync"):
            SyncLogger().sync_completed("user-1", {"tasks": 2}, {"contacts": 1}, 0, 12.5)

        record = caplog.records[-1]
        assert record.event == "sync_completed"
        assert record.pushed == {"tasks": 2}
        assert sync_runs_total.get(result="success") == before + 1

    def test_failed_event_is_an_error(self, caplog):
        before = sync_runs_total.get(result="failed")

        with caplog.at_level(logging.INFO, logger="jobtrack_sync.sync"):
            SyncLogger().sync_failed("user-1", "push", "quota exceeded", 3.0)

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.phase == "push"
        assert sync_runs_total.get(result="failed") == before + 1

    def test_json_formatter_includes_extras(self):
        record = logging.LogRecord("jobtrack_sync.sync", logging.WARNING, __file__, 1, "skipped", None, None)
        record.event = "document_skipped"
        record.kind = "tasks"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "skipped"
        assert data["event"] == "document_skipped"
        assert data["kind"] == "tasks"


class TestInMemoryAuth:
    def test_sign_up_signs_in(self):
        auth = InMemoryAuthProvider()
        result = asyncio.run(auth.sign_up("sam@example.com", "hunter22"))

        assert result.is_ok
        assert auth.current_user_id() == result.value

    def test_duplicate_and_blank_rejected(self):
        auth = InMemoryAuthProvider()
        asyncio.run(auth.sign_up("sam@example.com", "hunter22"))

        assert not asyncio.run(auth.sign_up("SAM@example.com", "other")).is_ok
        assert not asyncio.run(auth.sign_up("", "pw")).is_ok

    def test_sign_in_checks_password(self):
        auth = InMemoryAuthProvider()
        user_id = asyncio.run(auth.sign_up("sam@example.com", "hunter22")).value
        asyncio.run(auth.sign_out())

        assert not asyncio.run(auth.sign_in("sam@example.com", "wrong")).is_ok
        assert auth.current_user_id() is None
        assert asyncio.run(auth.sign_in("Sam@Example.com", "hunter22")).value == user_id

    def test_state_observers_see_changes(self):
        auth = InMemoryAuthProvider()
        seen = []
        unsubscribe = auth._user.subscribe(seen.append)

        asyncio.run(auth.sign_up("sam@example.com", "hunter22"))
        asyncio.run(auth.sign_out())
        unsubscribe()
        asyncio.run(auth.sign_up("kim@example.com", "pw"))

        assert len(seen) == 2
        assert seen[1] is None

    def test_state_stream_keeps_sign_out_and_back_in(self):
        auth = InMemoryAuthProvider()

        async def run():
            user_id = (await auth.sign_up("sam@example.com", "hunter22")).value
            stream = auth.observe_state()
            seen = [await stream.__anext__()]
            await auth.sign_out()
            await auth.sign_in("sam@example.com", "hunter22")
            seen.append(await stream.__anext__())
            seen.append(await stream.__anext__())
            await stream.aclose()
            return user_id, seen

        user_id, seen = asyncio.run(run())
        assert seen == [user_id, None, user_id]
