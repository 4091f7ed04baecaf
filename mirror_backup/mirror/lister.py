"""
Repository Lister — Walk the paginated workspace listing.

    GET {api}/repositories/{workspace}?pagelen=100
    -> {"values": [...], "next": "https://...page=2"}

Pages are followed until `next` is missing. Each page is retried on its
own; if one page exhausts its retries the whole listing fails and
whatever was collected so far is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import requests

from ..config import BackupConfig
from ..errors import ExhaustedRetries, ListingFailed, TransientApiFailure
from ..models.repository import RepositoryDescriptor, RepositoryPage
from ..reliability.retry import Sleep, run_with_retry

logger = logging.getLogger(__name__)


def build_session(config: BackupConfig) -> requests.Session:
    """Session carrying Basic auth (username:app-password)."""
    session = requests.Session()
    session.auth = (config.username, config.app_password)
    session.headers.update({
        "Accept": "application/json",
        "User-Agent": "mirror-backup",
    })
    return session


class RepositoryLister:
    """Produces every repository descriptor in the configured workspace."""

    def __init__(
        self,
        config: BackupConfig,
        session: Optional[requests.Session] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.config = config
        self.session = session or build_session(config)
        self._sleep = sleep

    def fetch_page(self, url: str) -> RepositoryPage:
        """Blocking fetch + validation of a single page."""
        try:
            response = self.session.get(url, timeout=self.config.request_timeout_seconds)
            response.raise_for_status()
            return RepositoryPage.model_validate(response.json())
        except requests.RequestException as e:
            status = e.response.status_code if e.response is not None else None
            raise TransientApiFailure(url, str(e), status) from e
        except ValueError as e:
            # Bad JSON or a payload that doesn't look like a page
            raise TransientApiFailure(url, f"invalid response: {e}") from e

    async def list_all(self) -> List[RepositoryDescriptor]:
        """
        Follow `next` links until exhausted.

        Raises:
            ListingFailed: a page could not be fetched within the retry budget
        """
        repos: List[RepositoryDescriptor] = []
        url: Optional[str] = self.config.repositories_url()
        logger.info(f"Fetching repositories from {self.config.workspace}...")

        while url:
            page_url = url
            try:
                page = await run_with_retry(
                    lambda: asyncio.to_thread(self.fetch_page, page_url),
                    self.config.retry,
                    f"HTTP GET {page_url}",
                    retry_on=(TransientApiFailure,),
                    sleep=self._sleep,
                )
            except ExhaustedRetries as e:
                raise ListingFailed(e, fetched=len(repos)) from e

            repos.extend(page.values)
            url = page.next

        logger.info(f"Found {len(repos)} repositories")
        return repos


async def list_all_repositories(
    config: BackupConfig,
    session: Optional[requests.Session] = None,
) -> List[RepositoryDescriptor]:
    """Convenience wrapper: list every repository in config.workspace."""
    return await RepositoryLister(config, session=session).list_all()
