"""
Client for the iTunes Search API (Mac App Store software).
"""

from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError
from requests import exceptions as req_exc

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.logging import get_logger
from appdiscovery.db.models import CanonicalCandidate

logger = get_logger(__name__)

MAC_SOFTWARE_ENTITY = "macSoftware"


class SearchError(Exception):
    """The search API could not be queried or returned an unusable body."""


class ItunesSearchClient:
    """
    Searches the canonical store by free-text term.

    Args:
        session: requests.Session to use (default: a new one)
        config: Endpoint, country, result limit and timeout (default: global config)
    """

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[Config] = None):
        self.config = config or get_config()
        self.session = session or requests.Session()

    def search(self, term: str) -> List[CanonicalCandidate]:
        """
        Raises:
            SearchError: On network failure, timeout, non-2xx status or a malformed body
        """
        params = {
            "term": term,
            "entity": MAC_SOFTWARE_ENTITY,
            "country": self.config.itunes_country,
            "limit": self.config.itunes_result_limit,
        }
        try:
            resp = self.session.get(
                self.config.itunes_search_url,
                params=params,
                timeout=self.config.itunes_timeout_s,
            )
        except req_exc.Timeout as e:
            raise SearchError(f"iTunes search timed out after {self.config.itunes_timeout_s}s") from e
        except req_exc.RequestException as e:
            raise SearchError(f"iTunes search failed: {e}") from e

        if not resp.ok:
            raise SearchError(f"iTunes API error: {resp.status_code}")

        try:
            body: Dict[str, Any] = resp.json()
        except ValueError as e:
            raise SearchError(f"iTunes API returned invalid JSON: {e}") from e
        if not isinstance(body, dict):
            raise SearchError("iTunes API returned an unexpected body")
        results = body.get("results") or []
        if not isinstance(results, list):
            raise SearchError("iTunes API returned an unexpected results field")

        candidates = []
        for result in results:
            try:
                candidates.append(CanonicalCandidate.model_validate(result))
            except ValidationError as e:
                logger.debug(f"Skipping malformed iTunes result: {e}")
        logger.debug(f"iTunes search {term!r}: {body.get('resultCount', len(candidates))} results")
        return candidates
