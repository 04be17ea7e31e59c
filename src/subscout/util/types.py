"""Core data types and enums used across the enumerator.

These types make resolution outcomes explicit and consistent.
No magic strings floating around - every outcome kind and error cause
has a defined meaning.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple


class OutcomeKind(Enum):
    """Classification of a single resolution attempt.

    Resolved: At least one address came back
    Not_Found: The resolver authoritatively said the name has no address
    Errored: We tried but could not find out (timeout, network, etc.)
    """
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    ERRORED = "errored"


class ErrorCause(Enum):
    """Why an attempt ended in ERRORED."""
    TIMEOUT = "timeout"
    RESOLUTION_FAILURE = "resolution_failure"


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of one resolution attempt for one candidate hostname.

    Build these through the resolved()/not_found()/errored() constructors
    so the kind and its payload always agree.
    """
    hostname: str
    kind: OutcomeKind
    addresses: Tuple[str, ...] = ()
    cause: Optional[ErrorCause] = None
    detail: str = ""
    duration_ms: float = 0.0

    @classmethod
    def resolved(cls, hostname: str, addresses, duration_ms: float = 0.0) -> 'ResolutionOutcome':
        return cls(hostname, OutcomeKind.RESOLVED,
                   addresses=tuple(addresses), duration_ms=duration_ms)

    @classmethod
    def not_found(cls, hostname: str, detail: str = "", duration_ms: float = 0.0) -> 'ResolutionOutcome':
        return cls(hostname, OutcomeKind.NOT_FOUND, detail=detail, duration_ms=duration_ms)

    @classmethod
    def errored(cls, hostname: str, cause: ErrorCause, detail: str = "",
                duration_ms: float = 0.0) -> 'ResolutionOutcome':
        return cls(hostname, OutcomeKind.ERRORED, cause=cause,
                   detail=detail, duration_ms=duration_ms)

    @property
    def is_resolved(self) -> bool:
        return self.kind is OutcomeKind.RESOLVED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON/CSV output."""
        return {
            'hostname': self.hostname,
            'kind': self.kind.value,
            'addresses': list(self.addresses),
            'cause': self.cause.value if self.cause else None,
            'detail': self.detail,
            'duration_ms': round(self.duration_ms, 2),
        }


@dataclass
class ScanConfig:
    """Runtime configuration for one enumeration run.

    Values come from .env / environment with sane defaults, and CLI
    flags override them.
    """
    domain: str
    wordlist_type: str = "light"
    wordlist_path: Optional[str] = None
    seclists_path: Optional[str] = None

    # Performance tuning
    threads: int = 10
    dns_timeout: float = 4.0
    retries: int = 0

    # Resolver settings
    resolver: str = "dnspython"
    nameservers: List[str] = field(default_factory=list)
    ipv6: bool = False
    wildcard_check: bool = False

    # Output
    output_path: Optional[str] = None
    output_format: Optional[str] = None
    show_addresses: bool = False
    progress: bool = True
    log_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dict for the JSON report."""
        return {
            'domain': self.domain,
            'wordlist_type': self.wordlist_type,
            'wordlist_path': self.wordlist_path,
            'threads': self.threads,
            'dns_timeout': self.dns_timeout,
            'retries': self.retries,
            'resolver': self.resolver,
            'nameservers': list(self.nameservers),
            'ipv6': self.ipv6,
            'wildcard_check': self.wildcard_check,
        }
