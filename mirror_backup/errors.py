"""
Errors — Failure taxonomy for a backup run.

Transient failures are retried locally by the retry executor. Once the
attempt budget is spent they surface as ExhaustedRetries, which the
lister and synchronizer re-label as ListingFailed / SyncFailed.

## Propagation

    TransientApiFailure ─┐
                         ├─> ExhaustedRetries ─> ListingFailed (fatal)
    TransientGitFailure ─┘                   └─> SyncFailed    (recorded)
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

_CREDENTIALS_IN_URL = re.compile(r"://[^/\s:@]+:[^/\s@]+@")


def redact_credentials(text: str) -> str:
    """Strip user:password from any URL embedded in text."""
    if not isinstance(text, str):
        return text
    return _CREDENTIALS_IN_URL.sub("://***@", text)


class MirrorBackupError(Exception):
    """Base class for all backup errors."""


class ConfigurationError(MirrorBackupError):
    """Raised when configuration is missing or invalid."""

    def __init__(self, problems: Sequence[str]):
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class TransientApiFailure(MirrorBackupError):
    """A single listing page could not be fetched or decoded."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = redact_credentials(url)
        self.status_code = status_code
        detail = f" (HTTP {status_code})" if status_code else ""
        super().__init__(f"GET {self.url} failed{detail}: {redact_credentials(message)}")


class TransientGitFailure(MirrorBackupError):
    """A git subprocess did not complete successfully."""

    def __init__(self, command: Sequence[str], message: str):
        self.command = [redact_credentials(part) for part in command]
        super().__init__(redact_credentials(message))

    @property
    def display_command(self) -> str:
        return " ".join(self.command)


class NonZeroExit(TransientGitFailure):
    """The process exited with a non-zero status."""

    def __init__(self, command: Sequence[str], code: int):
        self.code = code
        super().__init__(command, f"{' '.join(command)} exited {code}")


class SpawnError(TransientGitFailure):
    """The process could not be started at all."""

    def __init__(self, command: Sequence[str], cause: BaseException):
        self.cause = cause
        super().__init__(command, f"could not start {command[0]}: {cause}")


class ProcessTimeout(TransientGitFailure):
    """The process outlived its timeout and was killed."""

    def __init__(self, command: Sequence[str], timeout: float):
        self.timeout = timeout
        super().__init__(command, f"{' '.join(command[:2])} timed out after {timeout:g}s")


class ExhaustedRetries(MirrorBackupError):
    """Every attempt failed; carries the last observed failure."""

    def __init__(self, description: str, attempts: int, last_error: BaseException):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{description} failed after {attempts} attempt(s): "
            f"{redact_credentials(str(last_error))}"
        )


class SyncFailed(MirrorBackupError):
    """A single repository could not be cloned or updated."""

    def __init__(self, slug: str, cause: BaseException, action: Optional[str] = None):
        self.slug = slug
        self.cause = cause
        self.action = action
        super().__init__(f"{slug}: {redact_credentials(str(cause))}")


class ListingFailed(MirrorBackupError):
    """The repository list could not be obtained. Aborts the run."""

    def __init__(self, cause: BaseException, fetched: int = 0):
        self.cause = cause
        self.fetched = fetched
        super().__init__(
            f"Repository listing failed ({fetched} fetched before failure, discarded): "
            f"{redact_credentials(str(cause))}"
        )
