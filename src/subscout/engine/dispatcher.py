"""Bounded worker pool that drives DNS resolution.

A fixed number of worker threads share one cursor over the lazy
candidate sequence:

    worker loop:  next candidate (or retire) -> resolve -> record -> repeat

Pool size never depends on wordlist size: a 110k-line list runs on the
same N threads as a 45-line one, and candidates are pulled one at a
time rather than submitted up front as N futures per line.

The run ends when the cursor is exhausted (or stopped) and every worker
has finished its last lookup. Per-candidate failures never stop a
worker; they are recorded as ERRORED outcomes.
"""

import logging
import threading
import time
import concurrent.futures
from typing import Callable, Iterable, Iterator, Optional

from ..util.types import ErrorCause, ResolutionOutcome
from .candidates import generate_candidates, validate_domain
from .collector import ResultCollector, ResultSet
from .errors import InvalidConcurrency
from .resolver import DEFAULT_TIMEOUT, BaseResolver, DnsPythonResolver

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[ResolutionOutcome], None]


def validate_concurrency(concurrency) -> int:
    """Reject anything that is not an integer >= 1."""
    if isinstance(concurrency, bool) or not isinstance(concurrency, int):
        raise InvalidConcurrency(f"Concurrency must be an integer, got {concurrency!r}")
    if concurrency < 1:
        raise InvalidConcurrency(f"Concurrency must be at least 1, got {concurrency}")
    return concurrency


class CandidateCursor:
    """Mutually exclusive dequeue over a lazy iterator.

    `next()` is the only operation workers share. It returns None once
    the source is exhausted, the stop event is set, or the source raised
    (the exception is kept in `error` for the dispatcher to re-raise).
    Once stopped it reads one more item, so a source that was already
    used up is reported as exhausted rather than stopped early.
    """

    def __init__(self, candidates: Iterator[str], stop_event: threading.Event):
        self._candidates = candidates
        self._stop_event = stop_event
        self._lock = threading.Lock()
        self._done = False
        self.dispensed = 0
        self.stopped_early = False
        self.error: Optional[BaseException] = None

    def next(self) -> Optional[str]:
        with self._lock:
            if self._done:
                return None

            try:
                candidate = next(self._candidates)
            except StopIteration:
                self._done = True
                return None
            except Exception as e:
                self._done = True
                self.error = e
                return None

            if self._stop_event.is_set():
                # stopped_early means a candidate was left undispatched
                self._done = True
                self.stopped_early = True
                return None

            self.dispensed += 1
            return candidate


class Dispatcher:
    """Fixed-size pool of resolution workers.

    Args:
        resolver: adapter used for every lookup (shared by all workers)
        concurrency: number of workers == max lookups in flight
        collector: where outcomes go (a fresh one per run if omitted)
        stop_event: set it to stop handing out candidates
        on_outcome: called from worker threads after each outcome is recorded
    """

    def __init__(self, resolver: BaseResolver, concurrency: int,
                 collector: Optional[ResultCollector] = None,
                 stop_event: Optional[threading.Event] = None,
                 on_outcome: Optional[OutcomeCallback] = None):
        self.concurrency = validate_concurrency(concurrency)
        self.resolver = resolver
        self.collector = collector if collector is not None else ResultCollector()
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.on_outcome = on_outcome
        self.interrupted = False
        self._cursor: Optional[CandidateCursor] = None

    @property
    def dispensed(self) -> int:
        """Candidates handed to workers so far."""
        return self._cursor.dispensed if self._cursor else 0

    def run(self, candidates: Iterable[str]) -> ResultCollector:
        """Resolve every candidate and return the (unfinalized) collector.

        Ctrl-C while waiting stops the candidate supply; in-flight lookups
        finish (bounded by the resolver timeout) and the partial collector
        is returned with `interrupted` set.

        Raises:
            Whatever the candidate source raised while being read, after
            all workers have retired.
        """
        cursor = CandidateCursor(iter(candidates), self.stop_event)
        self._cursor = cursor

        logger.debug(f"Starting {self.concurrency} resolver workers")

        with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.concurrency, thread_name_prefix="resolver") as pool:
            workers = [pool.submit(self._worker, cursor) for _ in range(self.concurrency)]
            try:
                concurrent.futures.wait(workers)
            except KeyboardInterrupt:
                logger.warning("Interrupted - waiting for in-flight lookups to finish")
                self.stop_event.set()
                self._drain(workers)

        for worker in workers:
            # Workers swallow per-candidate failures; anything here is a bug
            worker.result()

        self.interrupted = cursor.stopped_early

        if cursor.error is not None:
            raise cursor.error

        logger.debug(f"Dispatched {cursor.dispensed} candidates")
        return self.collector

    def _drain(self, workers) -> None:
        """Wait for workers to retire; further Ctrl-C presses are ignored."""
        while True:
            try:
                concurrent.futures.wait(workers)
                return
            except KeyboardInterrupt:
                logger.warning("Still waiting for in-flight lookups (bounded by the resolver timeout)")

    def _worker(self, cursor: CandidateCursor) -> None:
        while True:
            hostname = cursor.next()
            if hostname is None:
                return

            outcome = self._attempt(hostname)
            self.collector.record(outcome)

            if self.on_outcome is not None:
                try:
                    self.on_outcome(outcome)
                except Exception as e:
                    logger.warning(f"Outcome callback failed for {hostname}: {e}")

    def _attempt(self, hostname: str) -> ResolutionOutcome:
        try:
            return self.resolver.resolve(hostname)
        except Exception as e:
            # Adapters should classify everything; keep the candidate accounted for anyway
            logger.debug(f"Resolver raised for {hostname}: {e!r}")
            return ResolutionOutcome.errored(
                hostname, ErrorCause.RESOLUTION_FAILURE, f"{type(e).__name__}: {e}")


def run(target_domain: str,
        candidate_source: Optional[Iterable[str]],
        concurrency: int,
        resolver: Optional[BaseResolver] = None,
        timeout: float = DEFAULT_TIMEOUT,
        stop_event: Optional[threading.Event] = None,
        on_outcome: Optional[OutcomeCallback] = None) -> ResultSet:
    """Enumerate subdomains of `target_domain` from a wordlist.

    Configuration is validated before any lookup: concurrency first, then
    the domain and wordlist source.

    Args:
        target_domain: base domain, e.g. "example.com"
        candidate_source: lazy sequence of raw wordlist labels
        concurrency: worker count (max lookups in flight)
        resolver: adapter to use; a DnsPythonResolver with `timeout` if omitted
        timeout: per-attempt timeout for the default resolver
        stop_event: cooperative cancellation
        on_outcome: progress callback, called once per candidate

    Returns:
        Finalized ResultSet

    Raises:
        InvalidConcurrency, InvalidDomain, WordlistUnavailable
    """
    validate_concurrency(concurrency)
    domain = validate_domain(target_domain)
    candidates = generate_candidates(domain, candidate_source)

    owns_resolver = resolver is None
    if owns_resolver:
        resolver = DnsPythonResolver(timeout=timeout)

    collector = ResultCollector(domain=domain)
    dispatcher = Dispatcher(resolver, concurrency, collector=collector,
                            stop_event=stop_event, on_outcome=on_outcome)

    logger.info(f"Enumerating {domain} with {concurrency} workers")
    start = time.monotonic()
    try:
        dispatcher.run(candidates)
    finally:
        if owns_resolver:
            resolver.close()

    result = collector.finalize(interrupted=dispatcher.interrupted,
                                elapsed_seconds=time.monotonic() - start)

    logger.info(
        f"Enumeration of {domain} finished: {len(result.resolved)} resolved, "
        f"{result.not_found} not found, {len(result.errored)} errored"
        + (" (interrupted)" if result.interrupted else "")
    )
    return result
