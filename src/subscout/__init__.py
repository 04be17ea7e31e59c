"""
subscout - wordlist-driven subdomain enumeration
"""

__version__ = "1.0.0"

from .engine import run, ResultSet, EngineError

__all__ = ['run', 'ResultSet', 'EngineError', '__version__']
