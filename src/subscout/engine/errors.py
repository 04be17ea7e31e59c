"""Fatal errors raised before any resolution work starts.

Per-candidate failures are never raised; they become ERRORED outcomes.
"""


class EngineError(Exception):
    """Base class for configuration errors that abort a run."""


class InvalidDomain(EngineError):
    """Target domain is empty or not a syntactically valid hostname."""


class WordlistUnavailable(EngineError):
    """The wordlist source could not be obtained or read."""


class InvalidConcurrency(EngineError):
    """Concurrency budget is not an integer >= 1."""
