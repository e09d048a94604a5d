"""HTTP catalog reader."""

import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import BaseCatalogReader
from ..errors import CatalogUnavailable
from ..models.catalog import SourceEntity, TargetEntity

logger = logging.getLogger(__name__)


class APICatalogReader(BaseCatalogReader):
    """
    Catalog reader for REST endpoints that report table and collection counts.

    Each endpoint may return a bare JSON list or an object wrapping the list
    under ``data``, ``tables``/``collections``, or ``items``.
    """

    LIST_FIELDS = ("data", "tables", "collections", "items", "results")

    def __init__(
        self,
        source_url: str,
        target_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 2.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the API catalog reader.

        Args:
            source_url: URL listing source tables
            target_url: URL listing target collections
            api_key: Bearer token for both endpoints
            timeout: Per-request timeout in seconds
            max_retries: Retries on 429/5xx responses
            backoff_factor: Retry backoff factor
            session: Custom requests session
        """
        self.source_url = source_url
        self.target_url = target_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retries = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retries)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        if self.api_key:
            session.headers["Authorization"] = f"Bearer {self.api_key}"
        session.headers["Accept"] = "application/json"

        return session

    def _get_records(self, url: str, side: str) -> List[Dict[str, Any]]:
        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.HTTPError as e:
            raise CatalogUnavailable(
                f"HTTP error reading {side} catalog: {e.response.status_code} - {e.response.text}",
                side=side,
            ) from e
        except (requests.exceptions.RequestException, ValueError) as e:
            raise CatalogUnavailable(f"Request for {side} catalog failed: {e}", side=side) from e

        if isinstance(data, list):
            return data

        if isinstance(data, dict):
            for list_field in self.LIST_FIELDS:
                if isinstance(data.get(list_field), list):
                    return data[list_field]

        raise CatalogUnavailable(f"Unexpected {side} catalog response from {url}", side=side)

    def fetch_source_catalog(self) -> List[SourceEntity]:
        records = self._get_records(self.source_url, "source")
        try:
            entities = [SourceEntity.from_dict(r) for r in records]
        except (TypeError, ValueError) as e:
            raise CatalogUnavailable(f"Malformed source catalog: {e}", side="source") from e

        logger.info(f"Fetched {len(entities)} source tables from {self.source_url}")
        return entities

    def fetch_target_catalog(self) -> List[TargetEntity]:
        records = self._get_records(self.target_url, "target")
        try:
            entities = [TargetEntity.from_dict(r) for r in records]
        except (TypeError, ValueError) as e:
            raise CatalogUnavailable(f"Malformed target catalog: {e}", side="target") from e

        logger.info(f"Fetched {len(entities)} target collections from {self.target_url}")
        return entities
