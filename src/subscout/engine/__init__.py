"""Concurrent resolution engine.

Public entry point is `run()`; the pieces are importable for callers
that want to wire their own resolver, collector or stop signal.
"""

from .errors import EngineError, InvalidDomain, WordlistUnavailable, InvalidConcurrency
from .candidates import generate_candidates, normalize_label, validate_domain
from .collector import ResultCollector, ResultSet
from .resolver import (
    BaseResolver,
    DnsPythonResolver,
    SystemResolver,
    RetryingResolver,
    build_resolver,
)
from .dispatcher import CandidateCursor, Dispatcher, run, validate_concurrency
from .wordlist import WordlistType, load_wordlist, find_seclists_path
from .wildcard import WildcardDetector, filter_wildcard

__all__ = [
    'EngineError', 'InvalidDomain', 'WordlistUnavailable', 'InvalidConcurrency',
    'generate_candidates', 'normalize_label', 'validate_domain',
    'ResultCollector', 'ResultSet',
    'BaseResolver', 'DnsPythonResolver', 'SystemResolver', 'RetryingResolver', 'build_resolver',
    'CandidateCursor', 'Dispatcher', 'run', 'validate_concurrency',
    'WordlistType', 'load_wordlist', 'find_seclists_path',
    'WildcardDetector', 'filter_wildcard',
]
