"""Result collection for one enumeration run.

Workers call `record()` concurrently; the collector is the only shared
mutable state in a run and is created fresh for each run. Once the
dispatcher is done, `finalize()` freezes everything into a ResultSet
for reporting.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from ..util.types import ErrorCause, OutcomeKind, ResolutionOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResultSet:
    """Immutable snapshot of a finished (or interrupted) run.

    `resolved` maps hostname -> addresses. Every candidate the run
    accounted for is in exactly one of resolved / not_found / errored.
    """
    domain: str
    resolved: Mapping[str, Tuple[str, ...]]
    not_found: int
    errored: Tuple[ResolutionOutcome, ...]
    interrupted: bool = False
    wildcard_filtered: Tuple[str, ...] = ()
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        """Candidates with a recorded outcome (wildcard-filtered hosts included)."""
        return len(self.resolved) + len(self.wildcard_filtered) + self.not_found + len(self.errored)

    @property
    def error_counts(self) -> Dict[ErrorCause, int]:
        return dict(Counter(outcome.cause for outcome in self.errored))

    def hostnames(self) -> List[str]:
        """Resolved hostnames, sorted for stable output."""
        return sorted(self.resolved)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for the JSON report."""
        return {
            'domain': self.domain,
            'interrupted': self.interrupted,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'counts': {
                'total': self.total,
                'resolved': len(self.resolved),
                'not_found': self.not_found,
                'errored': len(self.errored),
                'wildcard_filtered': len(self.wildcard_filtered),
                'errors_by_cause': {cause.value: n for cause, n in self.error_counts.items()},
            },
            'resolved': {host: list(self.resolved[host]) for host in self.hostnames()},
            'errored': [outcome.to_dict() for outcome in
                        sorted(self.errored, key=lambda o: o.hostname)],
            'wildcard_filtered': sorted(self.wildcard_filtered),
        }


class ResultCollector:
    """Thread-safe, insert-if-absent store of resolution outcomes."""

    def __init__(self, domain: str = ""):
        self.domain = domain
        self._lock = threading.Lock()
        self._seen = set()
        self._resolved: Dict[str, Tuple[str, ...]] = {}
        self._errored: List[ResolutionOutcome] = []
        self._not_found = 0
        self._duplicates = 0
        self._finalized = False

    def record(self, outcome: ResolutionOutcome) -> bool:
        """Store an outcome unless its hostname was already recorded.

        Returns:
            True if stored, False if it was a duplicate (ignored)

        Raises:
            RuntimeError: called after finalize()
        """
        with self._lock:
            if self._finalized:
                raise RuntimeError("Cannot record outcomes after finalize()")

            if outcome.hostname in self._seen:
                self._duplicates += 1
                logger.debug(f"Ignoring duplicate outcome for {outcome.hostname}")
                return False

            self._seen.add(outcome.hostname)

            if outcome.is_resolved:
                self._resolved[outcome.hostname] = tuple(outcome.addresses)
            elif outcome.kind is OutcomeKind.NOT_FOUND:
                self._not_found += 1
            else:
                self._errored.append(outcome)

            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    @property
    def duplicates(self) -> int:
        return self._duplicates

    def finalize(self, interrupted: bool = False, elapsed_seconds: float = 0.0) -> ResultSet:
        """Freeze the collected outcomes. May only be called once."""
        with self._lock:
            if self._finalized:
                raise RuntimeError("ResultCollector.finalize() called twice")
            self._finalized = True

            result = ResultSet(
                domain=self.domain,
                resolved=MappingProxyType(dict(self._resolved)),
                not_found=self._not_found,
                errored=tuple(self._errored),
                interrupted=interrupted,
                elapsed_seconds=elapsed_seconds,
            )

        if self._duplicates:
            logger.warning(f"{self._duplicates} duplicate outcomes were ignored")

        return result
