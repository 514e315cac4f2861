"""Tests for the metrics aggregator."""

import math
import threading
from datetime import datetime, timedelta, timezone

import pytest

from devops_stack.core.metrics import MetricsAggregator, _percent, _truncate_client

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def agg():
    return MetricsAggregator()


def test_percent_no_traffic():
    """Test that zero total counts as 100%."""
    assert _percent(0, 0) == 100


def test_percent_rounds_half_up():
    """Test percent rounding."""
    assert _percent(1, 8) == 13
    assert _percent(6, 10) == 60


def test_truncate_client():
    """Test client identifier truncation."""
    assert _truncate_client("192.168.100.200") == "192.168.10..."
    assert _truncate_client("10.0.0.1") == "10.0.0.1..."
    assert _truncate_client(None) == "unknown..."


def test_fresh_aggregator_is_zero(agg):
    """Test initial state."""
    snap = agg.get_snapshot()
    assert snap.request_total == 0
    assert snap.request_success == 0
    assert snap.request_errors == 0
    assert snap.requests_per_minute == 0
    assert snap.peak_requests_per_minute == 0
    assert snap.response_time_samples == ()
    assert snap.recent_requests == ()
    assert snap.average_response_time_ms == 0
    assert math.isinf(snap.min_response_time_ms)
    assert snap.max_response_time_ms == 0


@pytest.mark.parametrize(
    "status,success",
    [(199, False), (200, True), (302, True), (399, True), (400, False), (500, False)],
)
def test_status_classification(agg, status, success):
    """Test 200..399 is success and everything else is an error."""
    agg.record_request(status, 10)
    snap = agg.get_snapshot()
    assert snap.request_success == (1 if success else 0)
    assert snap.request_errors == (0 if success else 1)


def test_total_is_success_plus_errors(agg):
    """Test the counter invariant after every call."""
    for status in [200, 404, 201, 500, 301, 100, 503, 204]:
        agg.record_request(status, 5)
        snap = agg.get_snapshot()
        assert snap.request_total == snap.request_success + snap.request_errors


def test_scenario_three_successes_one_error(agg):
    """Test counts, average, min and max for a mixed sequence."""
    agg.record_request(200, 100)
    agg.record_request(200, 200)
    agg.record_request(200, 300)
    agg.record_request(500, 500)

    snap = agg.get_snapshot()
    assert snap.request_total == 4
    assert snap.request_success == 3
    assert snap.request_errors == 1
    assert snap.average_response_time_ms == 275
    assert snap.min_response_time_ms == 100
    assert snap.max_response_time_ms == 500


def test_sample_buffer_evicts_oldest(agg):
    """Test that 1001 samples keep the newest 1000."""
    for i in range(1001):
        agg.record_request(200, float(i))

    samples = agg.get_snapshot().response_time_samples
    assert len(samples) == 1000
    assert samples[0] == 1.0
    assert samples[-1] == 1000.0


def test_average_is_over_buffer_only():
    """Test that the average ignores evicted samples."""
    agg = MetricsAggregator(sample_capacity=3)
    for value in [1000, 10, 20, 30]:
        agg.record_request(200, value)
    assert agg.get_snapshot().average_response_time_ms == 20


def test_min_max_follow_eviction():
    """Test min/max track the buffered samples, not all time."""
    agg = MetricsAggregator(sample_capacity=3)
    for value in [5, 50, 20, 30]:
        agg.record_request(200, value)
    snap = agg.get_snapshot()
    assert snap.min_response_time_ms == 20
    assert snap.max_response_time_ms == 50

    agg.record_request(200, 25)
    snap = agg.get_snapshot()
    assert snap.response_time_samples == (20, 30, 25)
    assert snap.min_response_time_ms == 20
    assert snap.max_response_time_ms == 30


def test_recent_requests_most_recent_first(agg):
    """Test that 51 records keep the 50 newest, newest first."""
    for i in range(51):
        agg.record_request(200, 1, path=f"/item/{i}")

    recent = agg.get_snapshot().recent_requests
    assert len(recent) == 50
    assert recent[0].path == "/item/50"
    assert recent[-1].path == "/item/1"


def test_record_fields(agg):
    """Test the stored request record."""
    record = agg.record_request(
        201,
        12.5,
        method="POST",
        path="/api/users",
        timestamp=NOW,
        client="203.0.113.250",
        user_agent="pytest",
    )
    assert record.method == "POST"
    assert record.path == "/api/users"
    assert record.status_code == 201
    assert record.response_time_ms == 12.5
    assert record.timestamp == NOW
    assert record.client == "203.0.113...."
    assert agg.get_snapshot().recent_requests[0] == record
    assert record.to_dict()["timestamp"] == NOW.isoformat()


def test_snapshot_is_a_copy(agg):
    """Test that snapshots do not change after later updates."""
    agg.record_request(200, 10)
    snap = agg.get_snapshot()
    agg.record_request(500, 20)

    assert snap.request_total == 1
    assert snap.response_time_samples == (10,)
    assert len(snap.recent_requests) == 1
    with pytest.raises(AttributeError):
        snap.request_total = 99


def test_health_no_traffic(agg):
    """Test that an idle service is healthy."""
    summary = agg.get_health_summary()
    assert summary.healthy is True
    assert summary.success_rate == 100
    assert summary.total_requests == 0


def test_health_low_success_rate(agg):
    """Test 6/10 success is unhealthy."""
    for _ in range(6):
        agg.record_request(200, 10)
    for _ in range(4):
        agg.record_request(500, 10)
    summary = agg.get_health_summary()
    assert summary.healthy is False
    assert summary.success_rate == 60
    assert summary.errors == 4


def test_health_slow_responses(agg):
    """Test that a 1000ms average is unhealthy even with no errors."""
    agg.record_request(200, 1000)
    assert agg.get_health_summary().healthy is False

    agg.reset()
    agg.record_request(200, 999)
    assert agg.get_health_summary().healthy is True


def test_health_boundary_95_percent(agg):
    """Test that exactly 95% success is healthy."""
    for _ in range(19):
        agg.record_request(200, 10)
    agg.record_request(404, 10)
    summary = agg.get_health_summary()
    assert summary.success_rate == 95
    assert summary.healthy is True


def test_recompute_rate_counts_window(agg):
    """Test requests-per-minute and peak tracking."""
    for i in range(5):
        agg.record_request(200, 1, timestamp=NOW - timedelta(seconds=i * 10))
    agg.record_request(200, 1, timestamp=NOW - timedelta(seconds=90))

    assert agg.recompute_request_rate(now=NOW) == 5
    snap = agg.get_snapshot()
    assert snap.requests_per_minute == 5
    assert snap.peak_requests_per_minute == 5

    later = NOW + timedelta(seconds=35)
    assert agg.recompute_request_rate(now=later) == 3
    snap = agg.get_snapshot()
    assert snap.requests_per_minute == 3
    assert snap.peak_requests_per_minute == 5


def test_recompute_rate_capped_by_recent_buffer(agg):
    """Test the known undercount above 50 requests in the window."""
    for _ in range(80):
        agg.record_request(200, 1, timestamp=NOW)
    assert agg.recompute_request_rate(now=NOW) == 50


def test_metrics_for_period(agg):
    """Test on-demand trailing window metrics."""
    agg.record_request(200, 1, timestamp=NOW - timedelta(minutes=1))
    agg.record_request(500, 1, timestamp=NOW - timedelta(minutes=2))
    agg.record_request(201, 1, timestamp=NOW - timedelta(minutes=4))
    agg.record_request(200, 1, timestamp=NOW - timedelta(minutes=10))

    period = agg.get_metrics_for_period(5, now=NOW)
    assert period.period == "5 minutes"
    assert period.requests == 3
    assert period.success == 2
    assert period.errors == 1
    assert period.success_rate == 67

    empty = MetricsAggregator().get_metrics_for_period(1, now=NOW)
    assert empty.requests == 0
    assert empty.success_rate == 100


def test_reset_restores_fresh_state(agg):
    """Test reset zeroes counters, buffers and sentinels."""
    for status in [200, 500, 200]:
        agg.record_request(status, 42, timestamp=NOW)
    agg.recompute_request_rate(now=NOW)

    agg.reset()
    snap = agg.get_snapshot()
    assert snap.request_total == 0
    assert snap.request_errors == 0
    assert snap.requests_per_minute == 0
    assert snap.peak_requests_per_minute == 0
    assert snap.response_time_samples == ()
    assert snap.recent_requests == ()
    assert math.isinf(snap.min_response_time_ms)
    assert snap.max_response_time_ms == 0

    agg.record_request(200, 7)
    snap = agg.get_snapshot()
    assert snap.request_total == 1
    assert snap.min_response_time_ms == 7
    assert snap.max_response_time_ms == 7
    assert snap.average_response_time_ms == 7


def test_disabled_recompute_has_no_scheduler(agg):
    """Test that start/shutdown are no-ops without the periodic job."""
    assert agg.periodic_recompute_enabled is False
    agg.start()
    agg.shutdown()
    assert agg._scheduler is None


def test_periodic_recompute_start_and_shutdown():
    """Test that the rate job is scheduled and cancelled."""
    agg = MetricsAggregator(enable_periodic_recompute=True, recompute_interval_seconds=60)
    try:
        agg.start()
        assert agg._scheduler.running
        job = agg._scheduler.get_job("recompute_request_rate")
        assert job is not None
    finally:
        agg.shutdown()
    assert not agg._scheduler.running
    agg.shutdown()


@pytest.mark.parametrize("kwargs", [{"sample_capacity": 0}, {"recent_capacity": 0}])
def test_rejects_empty_buffers(kwargs):
    """Test that buffer capacities below 1 are refused."""
    with pytest.raises(ValueError):
        MetricsAggregator(**kwargs)


def test_health_just_below_95_percent(agg):
    """Test that 94.6% success reports 95 but is unhealthy."""
    for _ in range(946):
        agg.record_request(200, 10)
    for _ in range(54):
        agg.record_request(500, 10)
    summary = agg.get_health_summary()
    assert summary.success_rate == 95
    assert summary.healthy is False


def test_naive_timestamps_are_utc(agg):
    """Test that timestamps without a timezone are stored as UTC."""
    naive = datetime(2026, 1, 1, 12, 0, 0)
    record = agg.record_request(200, 5, timestamp=naive)
    assert record.timestamp == NOW
    assert record.timestamp.tzinfo is timezone.utc

    assert agg.recompute_request_rate() == 0
    assert agg.recompute_request_rate(now=naive) == 1
    assert agg.get_metrics_for_period(5, now=naive).requests == 1
    assert agg.get_metrics_for_period(5).requests == 0


def test_concurrent_updates_stay_consistent(agg):
    """Test counters and buffers under concurrent writers and readers."""
    writers, per_writer = 8, 500
    total = writers * per_writer
    done = threading.Event()
    violations = []

    def write(offset):
        for i in range(per_writer):
            status = 500 if (offset + i) % 7 == 0 else 200
            agg.record_request(status, float(i % 100), timestamp=NOW)

    def read():
        while not done.is_set():
            agg.recompute_request_rate(now=NOW)
            seen = agg.get_snapshot()
            if not (
                seen.request_total == seen.request_success + seen.request_errors
                and len(seen.response_time_samples) <= 1000
                and len(seen.recent_requests) <= 50
                and seen.peak_requests_per_minute >= seen.requests_per_minute
            ):
                violations.append(seen.request_total)
            agg.get_health_summary()

    readers = [threading.Thread(target=read) for _ in range(3)]
    threads = [threading.Thread(target=write, args=(n,)) for n in range(writers)]
    for thread in readers + threads:
        thread.start()
    for thread in threads:
        thread.join()
    done.set()
    for thread in readers:
        thread.join()

    agg.recompute_request_rate(now=NOW)
    snap = agg.get_snapshot()
    assert snap.request_total == snap.request_success + snap.request_errors == total
    assert len(snap.response_time_samples) == 1000
    assert len(snap.recent_requests) == 50
    assert snap.peak_requests_per_minute >= snap.requests_per_minute
    assert snap.min_response_time_ms == min(snap.response_time_samples)
    assert snap.max_response_time_ms == max(snap.response_time_samples)
    assert violations == []
