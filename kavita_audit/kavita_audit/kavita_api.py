import json
import requests
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import constants as c
from .models import Series, Volume
from .logging import APIError, ConfigError, ValidationError, log_api_call

logger = logging.getLogger(__name__)


def extract_base_url(opds_url: str) -> str:
    """'https://host/api/opds/KEY' -> 'https://host'"""
    return opds_url.strip().split(c.KAVITA_API_MARKER)[0].rstrip("/")


def extract_api_key(opds_url: str) -> str:
    """'https://host/api/opds/KEY' -> 'KEY'"""
    parts = opds_url.strip().split(c.KAVITA_OPDS_MARKER, 1)
    if len(parts) < 2 or not parts[1].strip("/"):
        raise ConfigError(f"Not a Kavita OPDS URL (expected '<server>/api/opds/<apiKey>'): {opds_url}")
    return parts[1].strip("/")


def build_library_filter(library_id: str) -> Dict[str, Any]:
    """Series filter body selecting every series of one library, sorted by name."""
    return {
        "id": 0,
        "name": None,
        "statements": [
            {
                "comparison": c.KAVITA_FILTER_COMPARISON_EQUAL,
                "field": c.KAVITA_FILTER_FIELD_LIBRARY,
                "value": str(library_id),
            }
        ],
        "combination": c.KAVITA_FILTER_COMBINATION_OR,
        "sortOptions": {"sortField": c.KAVITA_SORT_FIELD_SORT_NAME, "isAscending": True},
        "limitTo": 0,
    }


def _create_retry_session(
    retries: int = c.KAVITA_RETRY_COUNT,
    backoff_factor: float = c.KAVITA_RETRY_BACKOFF_FACTOR,
    status_forcelist: tuple = c.KAVITA_RETRY_STATUS_FORCELIST,
) -> requests.Session:
    """Creates a requests session with retry logic."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=status_forcelist,
        allowed_methods=None,  # the series filter is a POST, retry it too
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class KavitaAPI:
    """Read-only client for the parts of the Kavita API the audit needs."""

    def __init__(
        self,
        opds_url: str,
        timeout: int = c.KAVITA_TIMEOUT_SECONDS,
        max_retries: int = c.KAVITA_RETRY_COUNT,
        plugin_name: str = c.KAVITA_PLUGIN_NAME,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = extract_base_url(opds_url)
        self.api_key = extract_api_key(opds_url)
        self.timeout = timeout
        self.plugin_name = plugin_name
        self.session = session or _create_retry_session(retries=max_retries)
        self.token: Optional[str] = None

    def _request(self, method: str, endpoint: str, params: Optional[dict] = None, json_body: Any = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        log_api_call(url, method, params)
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = self.session.request(
                method, url, params=params, json=json_body, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise APIError(f"{method} {endpoint} failed: {e}") from e

        if not response.ok:
            raise APIError(f"{method} {endpoint} returned {response.status_code}: {response.text[:200]}")

        try:
            # Decimal keeps the scale of chapter numbers such as 10.10
            return json.loads(response.text, parse_float=Decimal)
        except ValueError as e:
            raise APIError(f"{method} {endpoint} returned a non-JSON body") from e

    def authenticate(self) -> str:
        """Exchange the API key for a bearer token."""
        self.token = None
        data = self._request(
            "POST",
            c.KAVITA_AUTH_ENDPOINT,
            params={"apiKey": self.api_key, "pluginName": self.plugin_name},
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise APIError("Authentication response did not contain a token")
        self.token = token
        logger.info(f"Authenticated against {self.base_url}")
        return token

    def _ensure_authenticated(self) -> None:
        if not self.token:
            self.authenticate()

    def fetch_series_list(self, library_id: str) -> List[Series]:
        self._ensure_authenticated()
        data = self._request(
            "POST",
            c.KAVITA_SERIES_ENDPOINT,
            params={"PageNumber": 1, "PageSize": 0},
            json_body=build_library_filter(library_id),
        )
        series = self._parse_list(data, Series, "series list")
        logger.info(f"Library {library_id}: {len(series)} series")
        return series

    def fetch_volumes(self, series_id: int) -> List[Volume]:
        """Volumes of one series, each populated with its chapters and files."""
        self._ensure_authenticated()
        data = self._request("GET", c.KAVITA_VOLUMES_ENDPOINT, params={"seriesId": series_id})
        return self._parse_list(data, Volume, f"volumes of series {series_id}")

    @staticmethod
    def _parse_list(data: Any, model: Any, what: str) -> list:
        if not isinstance(data, list):
            raise APIError(f"Expected a list for {what}, got {type(data).__name__}")
        try:
            return [model.from_dict(item) for item in data]
        except (ValidationError, ValueError, TypeError) as e:
            raise APIError(f"Malformed {what}: {e}") from e
