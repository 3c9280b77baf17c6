"""
CKAN action API client.

Implements the CatalogClientInterface on top of CKAN's ``package_show`` and
``package_update`` actions.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from rating_core.catalog.interfaces import CatalogClientInterface, CatalogApiError


class CkanApiClient(CatalogClientInterface):
    """
    Client for the CKAN action API (``/api/3/action``).

    CKAN wraps every response in an envelope ``{"success", "result", "error"}``;
    this client returns ``result`` and raises CatalogApiError otherwise.
    """

    def __init__(
        self,
        api_endpoint: str,
        api_key: Optional[str] = None,
        timeout: int = 30,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the CKAN client.

        Args:
            api_endpoint: Base URL of the CKAN site (e.g. 'https://demo.ckan.org')
            api_key: API key or token sent in the Authorization header
            timeout: Request timeout in seconds
            verify_ssl: Whether to verify TLS certificates
            session: Optional pre-configured requests session

        Raises:
            ValueError: If api_endpoint is not an absolute http(s) URL
        """
        parsed = urlparse(api_endpoint or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid CKAN API endpoint: {api_endpoint!r}")

        self.logger = logging.getLogger(__name__)
        self.api_endpoint = api_endpoint.rstrip("/")
        self.action_url = f"{self.api_endpoint}/api/3/action"
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if api_key:
            self.session.headers["Authorization"] = api_key

        self.logger.info(f"Initialized CKAN client for {self.api_endpoint}")

    def fetch_dataset(self, dataset_id: str) -> Dict[str, Any]:
        """Fetch a dataset document with ``package_show``."""
        return self._call_action("package_show", params={"id": dataset_id})

    def update_dataset(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Replace a dataset document with ``package_update``."""
        return self._call_action("package_update", payload=document)

    def _call_action(
        self,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.action_url}/{action}"
        try:
            if payload is None:
                response = self.session.get(
                    url, params=params, timeout=self.timeout, verify=self.verify_ssl
                )
            else:
                response = self.session.post(
                    url, json=payload, timeout=self.timeout, verify=self.verify_ssl
                )
        except requests.RequestException as e:
            self.logger.error(f"CKAN {action} request failed: {e}")
            raise CatalogApiError(
                {"__type": "Connection Error", "message": str(e), "action": action}
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            raise CatalogApiError(
                {
                    "__type": "JSON Error",
                    "message": str(e),
                    "text": response.text[:500],
                    "action": action,
                },
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict) or not body.get("success"):
            error = body.get("error") if isinstance(body, dict) else None
            if not isinstance(error, dict):
                error = {"__type": f"HTTP {response.status_code}", "message": str(body)[:500]}
            self.logger.debug(f"CKAN {action} rejected with {response.status_code}: {error}")
            raise CatalogApiError(error, status_code=response.status_code)

        self.logger.debug(f"CKAN {action} succeeded")
        return body["result"]
