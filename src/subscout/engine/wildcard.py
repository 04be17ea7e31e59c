"""Wildcard DNS detection.

Some zones carry a wildcard record:

    *.example.com A 192.0.2.1

Every label we try then "resolves", and a brute-force run reports the
whole wordlist as live. We detect this by resolving a handful of random
labels that cannot exist. If at least two of them resolve, the zone has
a wildcard and the addresses they returned are the wildcard addresses.
Resolved hosts whose addresses all fall inside that set are dropped from
the result; hosts with at least one distinct address are kept, since a
real record can sit next to a wildcard.

Detection goes through the same resolver adapter as the main run, so
custom nameservers and timeouts apply here too.
"""

import dataclasses
import logging
import secrets
from typing import Optional, Set

from ..util.types import OutcomeKind
from .collector import ResultSet
from .resolver import BaseResolver

logger = logging.getLogger(__name__)


class WildcardDetector:
    """Detects if a domain answers for arbitrary labels."""

    def __init__(self, domain: str, resolver: BaseResolver, num_tests: int = 5):
        """Initialize wildcard detector.

        Args:
            domain: Base domain to test (already validated)
            resolver: adapter used for the probe lookups
            num_tests: Number of random labels to try
        """
        self.domain = domain
        self.resolver = resolver
        self.num_tests = num_tests
        self.wildcard_ips: Optional[Set[str]] = None

    def has_wildcard(self) -> bool:
        if self.wildcard_ips is None:
            self._test_wildcard()
        return bool(self.wildcard_ips)

    def get_wildcard_ips(self) -> Set[str]:
        if self.wildcard_ips is None:
            self._test_wildcard()
        return set(self.wildcard_ips)

    def is_wildcard_match(self, addresses) -> bool:
        """True if every address is a wildcard address."""
        if not addresses or not self.has_wildcard():
            return False
        return set(addresses).issubset(self.wildcard_ips)

    def _test_wildcard(self) -> None:
        resolved = []

        for _ in range(self.num_tests):
            probe = self._random_hostname()
            outcome = self.resolver.resolve(probe)

            if outcome.is_resolved:
                resolved.append(set(outcome.addresses))
            elif outcome.kind is OutcomeKind.ERRORED:
                # Not conclusive either way
                logger.debug(f"Wildcard probe {probe} errored: {outcome.detail}")

        # Needs two hits; round-robin wildcards rotate, so keep every address seen
        if len(resolved) >= 2:
            self.wildcard_ips = set().union(*resolved)
            logger.warning(f"Wildcard DNS detected for {self.domain}")
            logger.warning(f"    Wildcard IPs: {', '.join(sorted(self.wildcard_ips))}")
        else:
            self.wildcard_ips = set()
            logger.info(f"No wildcard DNS detected for {self.domain}")

    def _random_hostname(self) -> str:
        return f"nonexistent-{secrets.token_hex(8)}.{self.domain}"


def filter_wildcard(result: ResultSet, detector: WildcardDetector) -> ResultSet:
    """Return a copy of `result` without hosts that only hit the wildcard.

    Dropped hosts are listed in `wildcard_filtered` so the tallies still
    add up to the number of candidates.
    """
    if not detector.has_wildcard():
        return result

    kept = {}
    dropped = []
    for host, addresses in result.resolved.items():
        if detector.is_wildcard_match(addresses):
            dropped.append(host)
        else:
            kept[host] = addresses

    if dropped:
        logger.info(f"Filtered out {len(dropped)} wildcard matches (kept {len(kept)} real subdomains)")

    return dataclasses.replace(
        result,
        resolved=type(result.resolved)(kept),
        wildcard_filtered=tuple(sorted(result.wildcard_filtered + tuple(dropped))),
    )
