"""
Unit Tests for the bounded worker pool and the run() entry point
"""

import itertools
import threading

import pytest

from subscout.engine import run
from subscout.engine.collector import ResultCollector
from subscout.engine.dispatcher import CandidateCursor, Dispatcher, validate_concurrency
from subscout.engine.errors import InvalidConcurrency, InvalidDomain, WordlistUnavailable
from subscout.util.types import ErrorCause, OutcomeKind
from conftest import StubResolver


def _labels(n):
    return [f"host{i}" for i in range(n)]


class TestValidateConcurrency:
    """Test suite for concurrency budget validation"""

    @pytest.mark.parametrize("value", [0, -1, -50])
    def test_below_one_rejected(self, value):
        with pytest.raises(InvalidConcurrency):
            validate_concurrency(value)

    @pytest.mark.parametrize("value", ["4", 2.5, None, True])
    def test_non_integers_rejected(self, value):
        with pytest.raises(InvalidConcurrency):
            validate_concurrency(value)

    def test_valid_budget_returned(self):
        assert validate_concurrency(16) == 16


class TestCandidateCursor:
    """Test suite for the shared dequeue point"""

    def test_hands_out_each_item_once(self):
        """Test concurrent next() calls never return the same candidate"""
        cursor = CandidateCursor(iter(range(5000)), threading.Event())
        taken = []
        lock = threading.Lock()

        def drain():
            while True:
                item = cursor.next()
                if item is None:
                    return
                with lock:
                    taken.append(item)

        threads = [threading.Thread(target=drain) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(taken) == list(range(5000))
        assert cursor.dispensed == 5000

    def test_stop_event_ends_supply(self):
        """Test a set stop event makes the cursor report exhaustion"""
        stop = threading.Event()
        cursor = CandidateCursor(iter(['a', 'b']), stop)
        assert cursor.next() == 'a'
        stop.set()
        assert cursor.next() is None
        assert cursor.stopped_early is True

    def test_stop_on_exhausted_source_is_not_early(self):
        stop = threading.Event()
        cursor = CandidateCursor(iter(['a']), stop)
        assert cursor.next() == 'a'
        stop.set()
        assert cursor.next() is None
        assert cursor.stopped_early is False

    def test_source_error_is_captured(self):
        """Test an exception from the source ends supply and is kept"""
        def broken():
            yield 'a'
            raise WordlistUnavailable("gone")

        cursor = CandidateCursor(broken(), threading.Event())
        assert cursor.next() == 'a'
        assert cursor.next() is None
        assert isinstance(cursor.error, WordlistUnavailable)


class TestRun:
    """Test suite for run() - the properties the engine guarantees"""

    def test_example_scenario(self, stub_resolver):
        """Test www/WWW/api/'' against a stub resolving www and api"""
        result = run('example.com', ['www', 'WWW', 'api', ''], 4, resolver=stub_resolver)

        assert set(result.resolved) == {'www.example.com', 'api.example.com'}
        assert result.not_found == 0
        assert len(result.errored) == 0
        assert sorted(stub_resolver.calls) == ['api.example.com', 'www.example.com']

    def test_zero_concurrency_rejected_before_any_lookup(self, stub_resolver):
        """Test budget 0 fails with InvalidConcurrency and no resolution happens"""
        with pytest.raises(InvalidConcurrency):
            run('example.com', ['www', 'api'], 0, resolver=stub_resolver)

        assert stub_resolver.calls == []

    def test_invalid_domain_rejected_before_any_lookup(self, stub_resolver):
        with pytest.raises(InvalidDomain):
            run('not a domain', ['www'], 4, resolver=stub_resolver)

        assert stub_resolver.calls == []

    def test_missing_wordlist_rejected_before_any_lookup(self, stub_resolver):
        with pytest.raises(WordlistUnavailable):
            run('example.com', None, 4, resolver=stub_resolver)

        assert stub_resolver.calls == []

    def test_timeout_is_counted_as_errored(self):
        """Test a timed-out label is excluded from results and counted as TIMEOUT"""
        resolver = StubResolver(resolved={'www.example.com': ['192.0.2.1']}, timeouts={'slow'})

        result = run('example.com', ['www', 'slow'], 2, resolver=resolver)

        assert 'slow.example.com' not in result.resolved
        assert [(o.hostname, o.cause) for o in result.errored] == [('slow.example.com', ErrorCause.TIMEOUT)]
        assert result.error_counts == {ErrorCause.TIMEOUT: 1}

    def test_errors_do_not_abort_the_pool(self):
        """Test failures, timeouts and raising resolvers leave other candidates unaffected"""
        resolver = StubResolver(
            resolved={f'host{i}.example.com': ['192.0.2.1'] for i in range(0, 60, 2)},
            timeouts={'host1', 'host3'},
            failures={'host5'},
            raises={'host7'},
        )

        result = run('example.com', _labels(60), 4, resolver=resolver)

        assert len(result.resolved) == 30
        assert len(result.errored) == 4
        assert result.not_found == 26
        raised = [o for o in result.errored if o.hostname == 'host7.example.com'][0]
        assert raised.cause is ErrorCause.RESOLUTION_FAILURE

    @pytest.mark.parametrize("concurrency", [1, 3, 8])
    def test_tallies_account_for_every_candidate(self, concurrency):
        """Test resolved + not-found + errored == distinct candidates"""
        labels = _labels(100) + _labels(100)  # every label twice
        resolver = StubResolver(
            resolved={f'host{i}.example.com': ['192.0.2.1'] for i in range(0, 100, 3)},
            timeouts={'host10', 'host20'},
        )

        result = run('example.com', labels, concurrency, resolver=resolver)

        assert len(result.resolved) + result.not_found + len(result.errored) == 100
        assert result.total == 100
        assert len(resolver.calls) == 100
        assert len(set(resolver.calls)) == 100

    def test_concurrency_does_not_change_results(self):
        """Test budget 1 and budget N resolve exactly the same hostnames"""
        resolved = {f'host{i}.example.com': ['192.0.2.1'] for i in range(0, 80, 7)}

        serial = run('example.com', _labels(80), 1, resolver=StubResolver(resolved=resolved))
        parallel = run('example.com', _labels(80), 12, resolver=StubResolver(resolved=resolved))

        assert set(serial.resolved) == set(parallel.resolved)
        assert serial.not_found == parallel.not_found

    @pytest.mark.parametrize("concurrency", [1, 2, 5])
    def test_in_flight_never_exceeds_budget(self, concurrency):
        """Test no more than N lookups run at the same time"""
        resolver = StubResolver(delay=0.005)

        run('example.com', _labels(60), concurrency, resolver=resolver)

        assert 1 <= resolver.peak_in_flight <= concurrency

    def test_progress_callback_called_once_per_candidate(self, stub_resolver):
        seen = []
        lock = threading.Lock()

        def on_outcome(outcome):
            with lock:
                seen.append(outcome.hostname)

        run('example.com', _labels(25), 4, resolver=stub_resolver, on_outcome=on_outcome)

        assert sorted(seen) == sorted(f'host{i}.example.com' for i in range(25))

    def test_failing_callback_does_not_drop_candidates(self, stub_resolver):
        def on_outcome(outcome):
            raise ValueError("progress bar broke")

        result = run('example.com', _labels(10), 3, resolver=stub_resolver, on_outcome=on_outcome)

        assert result.total == 10

    def test_source_error_mid_run_is_raised(self, stub_resolver):
        """Test a wordlist that fails part-way raises WordlistUnavailable"""
        def broken():
            yield 'www'
            yield 'api'
            raise OSError("read error")

        with pytest.raises(WordlistUnavailable):
            run('example.com', broken(), 2, resolver=stub_resolver)

    def test_default_resolver_is_closed(self, monkeypatch):
        """Test run() closes the resolver it created itself"""
        created = []

        def factory(timeout):
            stub = StubResolver()
            created.append(stub)
            return stub

        monkeypatch.setattr('subscout.engine.dispatcher.DnsPythonResolver', factory)

        run('example.com', ['www'], 1)

        assert created and created[0].closed is True


class TestCancellation:
    """Test suite for cooperative stop"""

    def test_stop_event_interrupts_unbounded_source(self):
        """Test an endless wordlist stops cleanly and every pulled candidate is accounted for"""
        stop = threading.Event()
        pulled = itertools.count()
        recorded = []
        lock = threading.Lock()

        def endless():
            for i in itertools.count():
                next(pulled)
                yield f"w{i}"

        def on_outcome(outcome):
            with lock:
                recorded.append(outcome.hostname)
                if len(recorded) >= 50:
                    stop.set()

        result = run('example.com', endless(), 4, resolver=StubResolver(),
                     stop_event=stop, on_outcome=on_outcome)

        assert result.interrupted is True
        assert result.total == len(recorded)
        assert result.total >= 50
        # the cursor reads one candidate past the stop
        assert next(pulled) == result.total + 1

    def test_completed_run_is_not_interrupted(self, stub_resolver):
        result = run('example.com', ['www'], 2, resolver=stub_resolver)
        assert result.interrupted is False

    def test_stop_after_last_candidate_is_not_interrupted(self, stub_resolver):
        """Test a stop that arrives once every candidate has an outcome leaves the run complete"""
        stop = threading.Event()

        def on_outcome(outcome):
            if outcome.hostname == 'mail.example.com':
                stop.set()

        result = run('example.com', ['www', 'api', 'mail'], 1, resolver=stub_resolver,
                     stop_event=stop, on_outcome=on_outcome)

        assert result.total == 3
        assert result.interrupted is False

    def test_stop_with_candidates_left_is_interrupted(self, stub_resolver):
        stop = threading.Event()

        result = run('example.com', ['www', 'api', 'mail'], 1, resolver=stub_resolver,
                     stop_event=stop, on_outcome=lambda outcome: stop.set())

        assert result.total == 1
        assert result.interrupted is True


class TestDispatcher:
    """Test suite for using Dispatcher directly"""

    def test_uses_supplied_collector(self, stub_resolver):
        collector = ResultCollector(domain='example.com')
        dispatcher = Dispatcher(stub_resolver, 3, collector=collector)

        returned = dispatcher.run(['www.example.com', 'mail.example.com'])

        assert returned is collector
        assert dispatcher.dispensed == 2
        result = collector.finalize()
        assert set(result.resolved) == {'www.example.com'}
        assert result.not_found == 1

    def test_worker_threads_retire(self, stub_resolver):
        """Test no resolver threads remain after run() returns"""
        Dispatcher(stub_resolver, 6).run([f'h{i}.example.com' for i in range(30)])

        alive = [t for t in threading.enumerate() if t.name.startswith('resolver')]
        assert alive == []

    def test_each_outcome_kind_recorded(self):
        resolver = StubResolver(resolved={'a.example.com': ['192.0.2.1']}, failures={'c'})
        collector = Dispatcher(resolver, 2).run(['a.example.com', 'b.example.com', 'c.example.com'])
        result = collector.finalize()

        kinds = {o.kind for o in result.errored}
        assert kinds == {OutcomeKind.ERRORED}
        assert result.not_found == 1
        assert list(result.resolved) == ['a.example.com']
