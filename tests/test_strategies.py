import logging
import threading

import pytest

from concurrency_bench import strategies
from concurrency_bench.errors import TransportError
from concurrency_bench.request import RequestDescriptor
from concurrency_bench.strategies import (
    CombinatorStrategy,
    SequentialStrategy,
    TaskPerCallCombinatorStrategy,
    TaskPerCallStrategy,
    ThreadPoolStrategy,
    check_call_count,
    default_strategies,
)
from concurrency_bench.target_app import BODY_SIZE

STRATEGY_TYPES = [
    SequentialStrategy,
    ThreadPoolStrategy,
    TaskPerCallStrategy,
    CombinatorStrategy,
    TaskPerCallCombinatorStrategy,
]


@pytest.fixture(params=STRATEGY_TYPES, ids=lambda cls: cls.key)
def strategy(request):
    return request.param()


class TestRegistry:
    def test_fixed_order(self):
        assert [type(s) for s in default_strategies()] == STRATEGY_TYPES

    def test_keys_and_columns_unique(self):
        strategies = default_strategies()
        assert len({s.key for s in strategies}) == 5
        assert len({s.column for s in strategies}) == 5

    def test_pool_size_passed_through(self):
        assert default_strategies(pool_size=3)[1].pool_size == 3


class TestCallCount:
    @pytest.mark.parametrize("value", [-1, 1.5, "3", None, True])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            check_call_count(value)

    def test_execute_rejects_before_any_request(self, strategy, users_request, hits):
        with pytest.raises(ValueError):
            strategy.execute(users_request, -5)
        assert hits() == 0


class TestEveryStrategy:
    @pytest.mark.parametrize("n", [0, 1, 7])
    def test_issues_exactly_n_requests(self, strategy, users_request, hits, n):
        elapsed = strategy.execute(users_request, n)
        assert isinstance(elapsed, int)
        assert elapsed >= 0
        assert hits() == n

    def test_logs_one_line_per_call(self, strategy, users_request, caplog):
        caplog.set_level(logging.INFO, logger="concurrency_bench.strategies")
        strategy.execute(users_request, 4)
        per_call = [r.getMessage() for r in caplog.records if r.getMessage().startswith(f"{strategy.label} call:")]
        assert per_call == [f"{strategy.label} call: {BODY_SIZE}"] * 4
        assert any(r.getMessage().startswith(f"{strategy.label} Execution Time:") for r in caplog.records)

    def test_error_status_fails_the_run(self, strategy, fail_request):
        with pytest.raises(TransportError) as exc_info:
            strategy.execute(fail_request, 3)
        assert exc_info.value.url == fail_request.url

    def test_connection_refused_fails_the_run(self, strategy, dead_request):
        with pytest.raises(TransportError):
            strategy.execute(dead_request, 2)

    def test_timeout_fails_the_run(self, strategy, slow_request):
        with pytest.raises(TransportError) as exc_info:
            strategy.execute(slow_request(1500, timeout=0.3), 3)
        assert "time" in exc_info.value.reason.lower()

    def test_fast_endpoint_is_fast(self, strategy, users_request):
        assert strategy.execute(users_request, 1) < 5000


class TestSequential:
    def test_fail_fast_stops_issuing(self, fail_request, hits):
        with pytest.raises(TransportError):
            SequentialStrategy().execute(fail_request, 5)
        assert hits() == 1


class TestThreadPool:
    def test_rejects_empty_pool(self):
        with pytest.raises(ValueError):
            ThreadPoolStrategy(pool_size=0)

    def test_concurrency_capped_at_pool_size(self, slow_request, hits, peak_inflight):
        elapsed = ThreadPoolStrategy(pool_size=2).execute(slow_request(200), 4)
        # two workers, four 200ms calls: at least two waves
        assert elapsed >= 400
        assert hits() == 4
        assert peak_inflight() == 2

    def test_server_never_sees_more_than_pool_size(self, slow_request, peak_inflight):
        ThreadPoolStrategy(pool_size=3).execute(slow_request(200), 9)
        assert peak_inflight() == 3

    def test_one_session_per_worker_thread(self, users_request, monkeypatch):
        used = []

        def recording_fetch(session, request):
            used.append((threading.get_ident(), id(session)))
            return real_fetch(session, request)

        real_fetch = strategies.fetch
        monkeypatch.setattr(strategies, "fetch", recording_fetch)
        s = ThreadPoolStrategy(pool_size=4)
        s.execute(users_request, 20)
        sessions_by_thread = {}
        for thread_id, session_id in used:
            sessions_by_thread.setdefault(thread_id, set()).add(session_id)
        assert all(len(ids) == 1 for ids in sessions_by_thread.values())
        assert len({session_id for _, session_id in used}) == len(sessions_by_thread)
        assert 1 <= s.last_session_count <= 4


class TestTaskPerCall:
    def test_no_ceiling(self, slow_request, peak_inflight):
        # above httpx's default limit of 100 connections
        s = TaskPerCallStrategy()
        s.execute(slow_request(1500), 120)
        assert peak_inflight() == 120
        assert s.last_peak_active == 120

    def test_calls_overlap(self, base_url):
        slow = RequestDescriptor(url=base_url + "/slow?ms=300", timeout=5)
        # strictly sequential would need at least 3s
        assert TaskPerCallStrategy().execute(slow, 10) < 3000


class TestCombinators:
    def test_default_client_keeps_connection_ceiling(self, slow_request, peak_inflight):
        CombinatorStrategy().execute(slow_request(1500), 120)
        assert peak_inflight() <= 100

    def test_task_per_call_combinator_has_no_ceiling(self, slow_request, peak_inflight):
        s = TaskPerCallCombinatorStrategy()
        s.execute(slow_request(1500), 120)
        assert peak_inflight() == 120

    def test_aggregate_runs_on_context(self, users_request):
        s = TaskPerCallCombinatorStrategy()
        s.execute(users_request, 5)
        # five calls plus the task that combines them
        assert s.last_spawned == 6

    @pytest.mark.parametrize("cls", [CombinatorStrategy, TaskPerCallCombinatorStrategy])
    def test_logs_combined_count(self, cls, users_request, caplog):
        caplog.set_level(logging.INFO, logger="concurrency_bench.strategies")
        s = cls()
        s.execute(users_request, 6)
        assert f"{s.label} combined responses: 6" in [r.getMessage() for r in caplog.records]

    @pytest.mark.parametrize("cls", [CombinatorStrategy, TaskPerCallCombinatorStrategy])
    def test_no_combined_line_on_failure(self, cls, fail_request, caplog):
        caplog.set_level(logging.INFO, logger="concurrency_bench.strategies")
        s = cls()
        with pytest.raises(TransportError):
            s.execute(fail_request, 3)
        assert not any("combined responses" in r.getMessage() for r in caplog.records)
