"""Wordlist selection and loading.

Sources, in order of size:
- light: 45 common labels bundled with the tool (no files needed)
- top5000 / top20000 / top110000: SecLists subdomains-top1million lists
- custom: any plain-text file, one label per line

Files are read lazily; the candidate generator does all normalization.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

from ..util.io import iter_text_lines
from .errors import WordlistUnavailable

logger = logging.getLogger(__name__)


DEFAULT_WORDLIST = [
    "www", "mail", "remote", "blog", "webmail", "server", "ns1", "ns2",
    "smtp", "secure", "vpn", "m", "shop", "ftp", "mail2", "test", "portal",
    "ns", "ww1", "host", "support", "dev", "web", "bbs", "ww42", "mx", "email",
    "cloud", "1", "2", "forum", "admin", "api", "cdn", "stage", "gw", "dns",
    "download", "demo", "dashboard", "app", "beta", "auth", "cms", "testing",
]

# Where SecLists usually lands on Kali/Parrot/manual installs
SECLISTS_SEARCH_PATHS = [
    "/usr/share/wordlists/seclists/Discovery/DNS/",
    "/usr/share/seclists/Discovery/DNS/",
    "/opt/seclists/Discovery/DNS/",
    "/usr/local/share/seclists/Discovery/DNS/",
]


class WordlistType(Enum):
    LIGHT = "light"
    TOP5000 = "top5000"
    TOP20000 = "top20000"
    TOP110000 = "top110000"
    CUSTOM = "custom"

    @classmethod
    def choices(cls) -> List[str]:
        return [member.value for member in cls]


SECLISTS_FILES = {
    WordlistType.TOP5000: "subdomains-top1million-5000.txt",
    WordlistType.TOP20000: "subdomains-top1million-20000.txt",
    WordlistType.TOP110000: "subdomains-top1million-110000.txt",
}


def find_seclists_path(custom_path: Optional[str] = None) -> Optional[Path]:
    """Locate the SecLists DNS directory.

    An explicit path (CLI flag or SECLISTS_PATH) wins when it exists,
    otherwise the well-known install locations are tried in order.
    """
    if custom_path:
        candidate = Path(custom_path).expanduser()
        if candidate.is_dir():
            return candidate
        logger.warning(f"SecLists path {candidate} does not exist, searching default locations")

    for potential in SECLISTS_SEARCH_PATHS:
        path = Path(potential)
        if path.is_dir():
            return path

    return None


def load_wordlist_file(path) -> Iterator[str]:
    """Open a wordlist file for lazy reading.

    Raises:
        WordlistUnavailable: path missing or not a regular file
    """
    path = Path(path).expanduser()
    if not path.is_file():
        raise WordlistUnavailable(f"Wordlist not found at path: {path}")

    logger.info(f"Using wordlist {path}")
    return iter_text_lines(path)


def load_wordlist(wordlist_type,
                  custom_path: Optional[str] = None,
                  seclists_path: Optional[str] = None) -> Iterator[str]:
    """Resolve a wordlist selection into a lazy sequence of raw labels.

    Args:
        wordlist_type: WordlistType or its string value
        custom_path: file to use for WordlistType.CUSTOM
        seclists_path: explicit SecLists DNS directory

    Raises:
        WordlistUnavailable: unknown type, missing custom path, SecLists
            not installed, or file not found
    """
    try:
        wordlist_type = WordlistType(wordlist_type)
    except ValueError:
        raise WordlistUnavailable(
            f"Unknown wordlist type {wordlist_type!r} "
            f"(expected one of: {', '.join(WordlistType.choices())})"
        )

    if wordlist_type is WordlistType.LIGHT:
        logger.info(f"Using bundled light wordlist ({len(DEFAULT_WORDLIST)} labels)")
        return iter(DEFAULT_WORDLIST)

    if wordlist_type is WordlistType.CUSTOM:
        if not custom_path:
            raise WordlistUnavailable(
                "Custom wordlist path must be provided when using the custom wordlist type"
            )
        return load_wordlist_file(custom_path)

    base = find_seclists_path(seclists_path)
    if base is None:
        raise WordlistUnavailable(
            "Could not find SecLists wordlist directory. "
            "Please install SecLists or provide a custom path using --seclists-path"
        )

    return load_wordlist_file(base / SECLISTS_FILES[wordlist_type])
