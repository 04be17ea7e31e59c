"""Candidate generation - turn a wordlist into hostnames to resolve.

Wordlists are messy: mixed case, blank lines, comments, the same word
repeated with different capitalisation. Every raw label goes through the
same pipeline before it is joined to the target domain:

1. Strip whitespace
2. Drop empty lines and '#' comment lines
3. Punycode: convert IDN (Unicode) labels to ASCII-compatible form
4. Lowercase and strip a trailing dot
5. Validate hostname syntax (RFC 1035, underscore allowed for SRV-style labels)
6. Deduplicate on the resulting hostname (first occurrence wins)

The sequence is lazy: nothing is read from the wordlist until the
dispatcher asks for the next candidate, so a 110k-line list costs the
same memory as a 45-line one (plus the dedup set).
"""

import re
import logging
from typing import Iterable, Iterator, Optional

from .errors import InvalidDomain, WordlistUnavailable

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r'^[a-z0-9_-]+$')

MAX_NAME_LENGTH = 253
MAX_LABEL_LENGTH = 63
COMMENT_MARKER = '#'


def _to_ascii(name: str) -> str:
    try:
        return name.encode('idna').decode('ascii')
    except UnicodeError:
        # Leave as-is; validation below rejects anything non-ASCII
        return name


def is_valid_hostname(name: str, min_labels: int = 1) -> bool:
    """Validate DNS name format per RFC 1035.

    Rules:
    - Labels separated by dots, no empty labels
    - Each label: 1-63 characters of a-z, 0-9, hyphen, underscore
    - Labels must not start or end with a hyphen
    - Total length: <= 253 characters
    """
    if not name or len(name) > MAX_NAME_LENGTH:
        return False

    labels = name.split('.')
    if len(labels) < min_labels:
        return False

    for label in labels:
        if not (1 <= len(label) <= MAX_LABEL_LENGTH):
            return False
        if label.startswith('-') or label.endswith('-'):
            return False
        if not _LABEL_RE.match(label):
            return False

    return True


def validate_domain(domain: str) -> str:
    """Normalize and validate the target domain.

    Returns:
        Lowercase, punycode, trailing-dot-free domain

    Raises:
        InvalidDomain: empty, single-label or malformed domain
    """
    if not isinstance(domain, str) or not domain.strip():
        raise InvalidDomain("Target domain must not be empty")

    normalized = _to_ascii(domain.strip()).lower().rstrip('.')

    if not is_valid_hostname(normalized, min_labels=2):
        raise InvalidDomain(f"Invalid target domain: {domain!r}")

    return normalized


def normalize_label(raw: str) -> Optional[str]:
    """Normalize one wordlist line to a hostname label.

    Returns None for lines that should be skipped (blank, comment, or
    not a valid hostname fragment).

    Examples:
        normalize_label("  WWW ") -> "www"
        normalize_label("# comment") -> None
        normalize_label("dev.api") -> "dev.api"
    """
    label = raw.strip()
    if not label or label.startswith(COMMENT_MARKER):
        return None

    label = _to_ascii(label).lower().rstrip('.')

    if not is_valid_hostname(label):
        logger.debug(f"Skipping invalid wordlist entry: {raw!r}")
        return None

    return label


def generate_candidates(domain: str, labels: Optional[Iterable[str]]) -> Iterator[str]:
    """Produce candidate hostnames for `domain` from a wordlist.

    The domain is checked immediately; the wordlist is consumed lazily,
    one line per candidate requested.

    Args:
        domain: Target domain, e.g. "example.com"
        labels: Iterable of raw wordlist lines

    Returns:
        Iterator of distinct "label.domain" strings in wordlist order

    Raises:
        InvalidDomain: target domain is malformed (raised by this call)
        WordlistUnavailable: no wordlist given (raised by this call), or
            reading it fails part-way (raised from next())
    """
    base = validate_domain(domain)

    if labels is None:
        raise WordlistUnavailable("No wordlist source was supplied")

    try:
        source = iter(labels)
    except TypeError:
        raise WordlistUnavailable(f"Wordlist source is not iterable: {type(labels).__name__}")

    return _candidates(base, source)


def _candidates(base: str, source: Iterator[str]) -> Iterator[str]:
    seen = set()
    skipped = 0
    duplicates = 0

    while True:
        try:
            raw = next(source)
        except StopIteration:
            break
        except OSError as e:
            raise WordlistUnavailable(f"Failed to read wordlist: {e}") from e

        label = normalize_label(raw)
        if label is None:
            skipped += 1
            continue

        hostname = f"{label}.{base}"
        if len(hostname) > MAX_NAME_LENGTH:
            skipped += 1
            continue

        if hostname in seen:
            duplicates += 1
            continue

        seen.add(hostname)
        yield hostname

    logger.debug(
        f"Candidate generation for {base}: {len(seen)} unique, "
        f"{duplicates} duplicates, {skipped} skipped"
    )
