"""
Shared fixtures: an in-memory resolver and an isolated environment.
"""

import logging
import os
import threading
import time

import pytest

from subscout.engine.resolver import BaseResolver
from subscout.util.types import ErrorCause, ResolutionOutcome

CONFIG_VARS = [
    "SECLISTS_PATH", "WORDLIST_TYPE", "WORDLIST_PATH", "THREADS", "DNS_TIMEOUT",
    "DNS_RETRIES", "RESOLVER", "NAMESERVERS", "DNS_IPV6", "WILDCARD_CHECK", "LOG_FILE",
]


class StubResolver(BaseResolver):
    """Answers from a dict, records every call and the peak number of
    lookups running at the same time."""

    def __init__(self, resolved=None, timeouts=(), failures=(), raises=(),
                 wildcard=None, delay=0.0):
        self.resolved = dict(resolved or {})
        self.timeouts = set(timeouts)
        self.failures = set(failures)
        self.raises = set(raises)
        self.wildcard = wildcard
        self.delay = delay
        self.timeout = 1.0
        self.calls = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.closed = False
        self._lock = threading.Lock()

    def resolve(self, hostname):
        with self._lock:
            self.calls.append(hostname)
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            return self._answer(hostname)
        finally:
            with self._lock:
                self.in_flight -= 1

    def _answer(self, hostname):
        label = hostname.split('.')[0]
        if label in self.raises:
            raise RuntimeError("resolver exploded")
        if label in self.timeouts:
            return ResolutionOutcome.errored(hostname, ErrorCause.TIMEOUT, "timed out")
        if label in self.failures:
            return ResolutionOutcome.errored(hostname, ErrorCause.RESOLUTION_FAILURE, "SERVFAIL")
        if hostname in self.resolved:
            return ResolutionOutcome.resolved(hostname, self.resolved[hostname])
        if self.wildcard:
            return ResolutionOutcome.resolved(hostname, self.wildcard)
        return ResolutionOutcome.not_found(hostname, "NXDOMAIN")

    def close(self):
        self.closed = True


@pytest.fixture
def stub_resolver():
    """Resolves www and api under example.com, nothing else"""
    return StubResolver(resolved={
        'www.example.com': ['93.184.216.34'],
        'api.example.com': ['93.184.216.35'],
    })


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep .env loading and config variables from leaking between tests"""
    env = {k: v for k, v in os.environ.items() if k not in CONFIG_VARS}
    monkeypatch.setattr(os, "environ", env)
    monkeypatch.chdir(tmp_path)
    return env


@pytest.fixture
def restore_logging():
    """setup_logging() replaces root handlers; put them back afterwards"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
