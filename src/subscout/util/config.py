"""Load configuration from .env / environment variables.

Environment supplies the defaults, CLI flags override them. Nothing
here talks to the network; validation of the domain and the thread
count happens in the engine so library callers get the same checks.

Recognised variables:
    SECLISTS_PATH   directory holding the SecLists DNS wordlists
    WORDLIST_TYPE   light | top5000 | top20000 | top110000 | custom
    WORDLIST_PATH   custom wordlist file
    THREADS         worker pool size (default 10)
    DNS_TIMEOUT     per-attempt timeout in seconds (default 4.0)
    DNS_RETRIES     extra attempts for errored lookups (default 0)
    RESOLVER        dnspython | system
    NAMESERVERS     comma separated nameserver IPs
    DNS_IPV6        also query AAAA records
    WILDCARD_CHECK  detect and filter wildcard DNS
    LOG_FILE        mirror log output to this file
"""

import os
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .types import ScanConfig

logger = logging.getLogger(__name__)


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = _env_str(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env_str(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> List[str]:
    value = _env_str(name)
    if value is None:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(domain: str, env_file: Optional[Path] = None, **overrides: Any) -> ScanConfig:
    """Build a ScanConfig for `domain`.

    Loads `env_file` (or ./.env when present) without overriding
    variables already set in the process environment, then applies
    every override whose value is not None.
    """
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment from {env_path}")

    config = ScanConfig(
        domain=domain,
        wordlist_type=_env_str("WORDLIST_TYPE", "light").lower(),
        wordlist_path=_env_str("WORDLIST_PATH"),
        seclists_path=_env_str("SECLISTS_PATH"),

        threads=_env_int("THREADS", 10),
        dns_timeout=_env_float("DNS_TIMEOUT", 4.0),
        retries=_env_int("DNS_RETRIES", 0),

        resolver=_env_str("RESOLVER", "dnspython").lower(),
        nameservers=_env_list("NAMESERVERS"),
        ipv6=_env_bool("DNS_IPV6"),
        wildcard_check=_env_bool("WILDCARD_CHECK"),

        log_file=_env_str("LOG_FILE"),
    )

    applied: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(config, key):
            raise TypeError(f"Unknown configuration option: {key}")
        setattr(config, key, value)
        applied[key] = value

    # A custom path with no explicit type means "use that file"
    if (config.wordlist_path and 'wordlist_type' not in applied
            and _env_str("WORDLIST_TYPE") is None):
        config.wordlist_type = "custom"

    return config
