"""
Reliability Module — Bounded retries with exponential backoff.
"""

from .retry import run_with_retry

__all__ = [
    "run_with_retry",
]
