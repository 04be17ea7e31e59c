"""Resolver adapters - one DNS lookup per call, classified.

The dispatcher only ever calls `resolve(hostname)` and gets back a
ResolutionOutcome; it never sees a DNS library exception:

    RESOLVED   at least one address came back
    NOT_FOUND  the DNS said "no such name" (NXDOMAIN) or "no address
               records for this name" (NoAnswer)
    ERRORED    we could not find out: TIMEOUT, or RESOLUTION_FAILURE for
               SERVFAIL/no nameservers/network errors/anything else

Adapters:
    DnsPythonResolver  dnspython stub resolver (default)
    SystemResolver     the host's getaddrinfo(), like most simple tools use
    RetryingResolver   wraps another adapter and retries ERRORED outcomes
"""

import logging
import socket
import threading
import time
import concurrent.futures
from typing import List, Optional, Sequence

import dns.exception
import dns.resolver

from ..util.time import now_utc, duration_ms
from ..util.types import ErrorCause, OutcomeKind, ResolutionOutcome

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 4.0


class BaseResolver:
    """Interface every resolver adapter implements.

    `resolve` performs exactly one attempt and must return within
    roughly `timeout` seconds. It must not raise for lookup failures.
    """

    timeout: float = DEFAULT_TIMEOUT

    def resolve(self, hostname: str) -> ResolutionOutcome:
        raise NotImplementedError

    def close(self) -> None:
        """Release any helper resources (threads, sockets)."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def _dedup(addresses) -> List[str]:
    seen = []
    for address in addresses:
        if address not in seen:
            seen.append(address)
    return seen


class DnsPythonResolver(BaseResolver):
    """Stub resolver built on dnspython.

    Queries A (and AAAA when ipv6=True) under a single deadline so the
    whole attempt is bounded by `timeout`, not `timeout` per record type.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT,
                 nameservers: Optional[Sequence[str]] = None,
                 ipv6: bool = False):
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.timeout = timeout
        self.record_types = ['A', 'AAAA'] if ipv6 else ['A']

        if nameservers:
            self._resolver = dns.resolver.Resolver(configure=False)
            self._resolver.nameservers = list(nameservers)
        else:
            try:
                self._resolver = dns.resolver.Resolver()
            except dns.resolver.NoResolverConfiguration as e:
                raise ValueError(f"No system DNS configuration found, pass nameservers explicitly: {e}")

        self._resolver.timeout = timeout
        self._resolver.lifetime = timeout

    @property
    def nameservers(self) -> List[str]:
        return [str(ns) for ns in self._resolver.nameservers]

    def resolve(self, hostname: str) -> ResolutionOutcome:
        start = now_utc()
        deadline = time.monotonic() + self.timeout

        addresses = []
        not_found = []
        failure: Optional[ResolutionOutcome] = None

        for rdtype in self.record_types:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                failure = ResolutionOutcome.errored(
                    hostname, ErrorCause.TIMEOUT, f"{rdtype} lookup not started before deadline")
                break

            try:
                answer = self._resolver.resolve(hostname, rdtype, lifetime=remaining)
                addresses.extend(rdata.to_text() for rdata in answer)
            except dns.resolver.NXDOMAIN:
                # The name itself does not exist; other record types won't either
                return ResolutionOutcome.not_found(
                    hostname, "NXDOMAIN", duration_ms=duration_ms(start))
            except dns.resolver.NoAnswer:
                not_found.append(rdtype)
            except dns.exception.Timeout as e:
                failure = ResolutionOutcome.errored(hostname, ErrorCause.TIMEOUT, str(e))
            except dns.resolver.NoNameservers as e:
                failure = ResolutionOutcome.errored(
                    hostname, ErrorCause.RESOLUTION_FAILURE, f"No nameserver answered: {e}")
            except (dns.exception.DNSException, OSError) as e:
                failure = ResolutionOutcome.errored(
                    hostname, ErrorCause.RESOLUTION_FAILURE, f"{type(e).__name__}: {e}")

        elapsed = duration_ms(start)

        if addresses:
            return ResolutionOutcome.resolved(hostname, _dedup(addresses), duration_ms=elapsed)

        if failure is not None:
            return ResolutionOutcome.errored(
                hostname, failure.cause, failure.detail, duration_ms=elapsed)

        return ResolutionOutcome.not_found(
            hostname, f"No {'/'.join(not_found)} records", duration_ms=elapsed)


# getaddrinfo codes that mean "this name has no address", not "lookup broke"
_NOT_FOUND_CODES = {socket.EAI_NONAME}
if hasattr(socket, 'EAI_NODATA'):
    _NOT_FOUND_CODES.add(socket.EAI_NODATA)


class SystemResolver(BaseResolver):
    """Host resolver via socket.getaddrinfo().

    getaddrinfo() has no timeout parameter, so each call runs on a helper
    thread and we stop waiting `timeout` seconds after the helper picked
    it up. Time spent queued for a helper never counts as a timeout.

    The helper pool is sized to the run's concurrency, so at most
    `max_helpers` getaddrinfo() calls are outstanding at once. A lookup
    that hangs keeps its helper busy until the OS gives up; when no
    helper frees up within `queue_timeout` the attempt is reported as
    RESOLUTION_FAILURE, not TIMEOUT, since it never ran.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, ipv6: bool = False,
                 max_helpers: int = 10, queue_timeout: Optional[float] = None):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if max_helpers < 1:
            raise ValueError("max_helpers must be >= 1")

        self.timeout = timeout
        self.max_helpers = max_helpers
        self.queue_timeout = queue_timeout if queue_timeout is not None else max(30.0, 5 * timeout)
        self.family = socket.AF_UNSPEC if ipv6 else socket.AF_INET
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_helpers, thread_name_prefix="getaddrinfo")

    def _lookup(self, hostname: str, started: threading.Event) -> List[str]:
        started.set()
        infos = socket.getaddrinfo(hostname, None, family=self.family, type=socket.SOCK_STREAM)
        return _dedup(info[4][0] for info in infos)

    def resolve(self, hostname: str) -> ResolutionOutcome:
        queued = now_utc()
        started = threading.Event()
        future = self._executor.submit(self._lookup, hostname, started)

        if not started.wait(self.queue_timeout):
            if future.cancel():
                return ResolutionOutcome.errored(
                    hostname, ErrorCause.RESOLUTION_FAILURE,
                    f"No getaddrinfo helper free within {self.queue_timeout}s",
                    duration_ms=duration_ms(queued))
            # Picked up just as we gave up waiting
            started.wait()

        start = now_utc()
        try:
            addresses = future.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            return ResolutionOutcome.errored(
                hostname, ErrorCause.TIMEOUT,
                f"getaddrinfo did not answer within {self.timeout}s",
                duration_ms=duration_ms(start))
        except socket.gaierror as e:
            if e.errno in _NOT_FOUND_CODES:
                return ResolutionOutcome.not_found(
                    hostname, str(e), duration_ms=duration_ms(start))
            return ResolutionOutcome.errored(
                hostname, ErrorCause.RESOLUTION_FAILURE, str(e),
                duration_ms=duration_ms(start))
        except OSError as e:
            return ResolutionOutcome.errored(
                hostname, ErrorCause.RESOLUTION_FAILURE, f"{type(e).__name__}: {e}",
                duration_ms=duration_ms(start))

        if not addresses:
            return ResolutionOutcome.not_found(
                hostname, "No addresses returned", duration_ms=duration_ms(start))

        return ResolutionOutcome.resolved(hostname, addresses, duration_ms=duration_ms(start))

    def close(self) -> None:
        self._executor.shutdown(wait=False)


class RetryingResolver(BaseResolver):
    """Retry policy layered around another adapter.

    Only ERRORED outcomes are retried; RESOLVED and NOT_FOUND are
    answers, not failures. Backoff is linear: backoff * attempt number.
    """

    def __init__(self, inner: BaseResolver, attempts: int = 3, backoff: float = 0.5,
                 sleep=time.sleep):
        if attempts < 1:
            raise ValueError("attempts must be >= 1")

        self.inner = inner
        self.attempts = attempts
        self.backoff = backoff
        self.timeout = inner.timeout
        self._sleep = sleep

    def resolve(self, hostname: str) -> ResolutionOutcome:
        outcome = self.inner.resolve(hostname)

        for attempt in range(1, self.attempts):
            if outcome.kind is not OutcomeKind.ERRORED:
                break
            logger.debug(f"Retrying {hostname} after {outcome.cause.value} "
                         f"(attempt {attempt + 1}/{self.attempts})")
            if self.backoff > 0:
                self._sleep(self.backoff * attempt)
            outcome = self.inner.resolve(hostname)

        return outcome

    def close(self) -> None:
        self.inner.close()


def build_resolver(kind: str = "dnspython", timeout: float = DEFAULT_TIMEOUT,
                   nameservers: Optional[Sequence[str]] = None, ipv6: bool = False,
                   retries: int = 0, concurrency: int = 10) -> BaseResolver:
    """Construct the adapter named by configuration.

    Args:
        kind: "dnspython" or "system"
        timeout: per-attempt timeout in seconds
        nameservers: custom nameservers (dnspython only)
        ipv6: also look up AAAA records
        retries: extra attempts for ERRORED outcomes (0 = single attempt)
        concurrency: worker count of the run; sizes the system resolver's
            getaddrinfo helper pool
    """
    kind = (kind or "dnspython").lower()

    if kind == "dnspython":
        resolver: BaseResolver = DnsPythonResolver(timeout=timeout, nameservers=nameservers, ipv6=ipv6)
    elif kind == "system":
        if nameservers:
            logger.warning("Custom nameservers are ignored by the system resolver")
        resolver = SystemResolver(timeout=timeout, ipv6=ipv6, max_helpers=max(1, concurrency))
    else:
        raise ValueError(f"Unknown resolver {kind!r} (expected 'dnspython' or 'system')")

    if retries > 0:
        resolver = RetryingResolver(resolver, attempts=retries + 1)

    return resolver
