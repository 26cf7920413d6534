"""
Base connector for the recipe backend.

Every backend resource (categories, recipes, favorites, comments, users) is wrapped by a
small connector class. This module provides the shared plumbing so each connector only
describes its endpoint and payloads:

- One requests.Session per connector (injectable, which is how tests fake HTTP)
- A timeout on every call
- JSON headers plus an optional bearer token
- Envelope handling for {success, data?, error?} responses

Error mapping, in the order it is checked:
- requests exceptions, non-2xx status, undecodable JSON -> NetworkError
- success == false -> BusinessRuleError with the backend's message verbatim
"""

import logging
from typing import Any, Dict, Optional

import requests

from recipe_archive.config import ApiConfig
from recipe_archive.errors import BusinessRuleError, NetworkError

logger = logging.getLogger(__name__)


class BaseConnector:
    """
    Shared HTTP/JSON plumbing for backend connectors.

    Subclasses set `endpoint` (e.g., "/recipes-simple.php") and call _request().

    Attributes:
        endpoint: Path of the backend script, relative to the base URL
    """
    endpoint: str = ""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
    ) -> None:
        """
        Initialize the connector.

        Args:
            base_url: Backend base URL (defaults to RECIPE_API_BASE_URL / built-in default)
            session: requests.Session to use (a new one is created if omitted)
            timeout: Request timeout in seconds (defaults to RECIPE_API_TIMEOUT)
            token: Optional bearer token forwarded as Authorization header
        """
        self.base_url = (base_url or ApiConfig.get_base_url()).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or ApiConfig.get_timeout()
        self.token = token

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a request against this connector's endpoint and unwrap the envelope.

        Args:
            method: HTTP method
            params: Query string parameters (None values are dropped)
            payload: JSON body

        Returns:
            The decoded envelope dictionary (success is guaranteed truthy)

        Raises:
            NetworkError: On transport failure, non-2xx status or malformed JSON
            BusinessRuleError: If the envelope reports success=false
        """
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug("%s %s params=%r", method, self.url, clean_params)

        try:
            response = self.session.request(
                method,
                self.url,
                params=clean_params or None,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"{method} {self.endpoint} timed out after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Could not connect to backend for {method} {self.endpoint}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"{method} {self.endpoint} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                f"Backend returned {response.status_code} for {method} {self.endpoint}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(
                f"Backend returned malformed JSON for {method} {self.endpoint}",
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise NetworkError(
                f"Unexpected response shape for {method} {self.endpoint}: {type(body).__name__}",
                status_code=response.status_code,
            )

        if not body.get("success"):
            message = body.get("error") or body.get("message") or "Request was rejected by the backend"
            raise BusinessRuleError(str(message))

        return body
