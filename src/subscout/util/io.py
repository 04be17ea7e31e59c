"""Safe file I/O utilities.

Helper functions for reading wordlists and writing reports with proper
error handling.
"""

import json
import csv
from pathlib import Path
from typing import Iterator, List, Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, create if needed. Returns the path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(path: Path, data: Any, indent: int = 2) -> None:
    """Write data to JSON file safely."""
    path = Path(path)
    ensure_dir(path.parent)
    
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, default=str)
        logger.debug(f"Wrote JSON to {path}")
    except Exception as e:
        logger.error(f"Failed to write JSON to {path}: {e}")
        raise


def write_csv(path: Path, rows: List[Dict[str, Any]], fieldnames: Optional[List[str]] = None) -> None:
    """Write rows to CSV file safely.
    
    If fieldnames not provided, uses keys from first row. A header is
    still written for an empty report when fieldnames are given.
    """
    path = Path(path)
    ensure_dir(path.parent)
    
    if not rows and fieldnames is None:
        logger.warning(f"No rows to write to {path}")
        return
    
    if fieldnames is None:
        fieldnames = list(rows[0].keys())
    
    try:
        with open(path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)
        logger.debug(f"Wrote {len(rows)} rows to {path}")
    except Exception as e:
        logger.error(f"Failed to write CSV to {path}: {e}")
        raise


def write_text_lines(path: Path, lines: List[str]) -> None:
    """Write one entry per line."""
    path = Path(path)
    ensure_dir(path.parent)
    
    try:
        with open(path, 'w', encoding='utf-8') as f:
            for line in lines:
                f.write(f"{line}\n")
        logger.debug(f"Wrote {len(lines)} lines to {path}")
    except Exception as e:
        logger.error(f"Failed to write text file {path}: {e}")
        raise


def iter_text_lines(path: Path) -> Iterator[str]:
    """Lazily yield raw lines from a text file (newline stripped).
    
    The file is opened on first iteration, so a missing file surfaces
    as FileNotFoundError from next(), not from this call. Undecodable
    bytes are replaced rather than aborting a long wordlist.
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        for line in f:
            yield line.rstrip('\r\n')


def read_text_lines(path: Path) -> List[str]:
    """Read text file and return non-empty lines, stripped.
    
    Useful for wordlists, nameserver lists, etc.
    """
    path = Path(path)
    
    if not path.exists():
        return []
    
    try:
        return [line.strip() for line in iter_text_lines(path)
                if line.strip() and not line.startswith('#')]
    except Exception as e:
        logger.warning(f"Failed to read text file {path}: {e}")
        return []
