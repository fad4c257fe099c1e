#!/usr/bin/env python3
"""
API Client for the Real-Time-Response command API
"""
import requests
from requests.adapters import HTTPAdapter
from typing import List, Optional, Dict, Any
from pydantic import ValidationError

from .api_response_formats import SessionToken, DeviceQueryResponse, BatchInitResponse
from .errors import (
    AuthenticationFailed,
    DiscoveryFailed,
    SessionInitError,
    TransportError,
)

DEFAULT_BASE_URL = "https://api.crowdstrike.com"


class RTRClient:
    """Client for the OAuth2, device query and batch RTR endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        verify_cert: bool = True,
        timeout: float = 30,
        pool_size: int = 32
    ):
        """
        Initialize the RTR API client.

        Args:
            base_url: API root, e.g. "https://api.crowdstrike.com"
            verify_cert: Whether to verify the server TLS certificate
            timeout: Transport timeout in seconds for every request (default: 30)
            pool_size: Connection pool size, should match the concurrency cap
        """
        self.auth_url = base_url.rstrip("/")
        self.base_url = f"{self.auth_url}/real-time-response"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.verify = verify_cert

        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=pool_size)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

        self._token: Optional[SessionToken] = None

    @property
    def token(self) -> Optional[SessionToken]:
        return self._token

    def _headers(self) -> Dict[str, str]:
        if self._token is None:
            raise AuthenticationFailed("Client is not authenticated")
        return self._token.headers

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    def authenticate(self, client_id: str, client_secret: str) -> SessionToken:
        """
        Exchange client credentials for a bearer token.

        Args:
            client_id: API client ID
            client_secret: API client secret

        Returns:
            SessionToken used for every subsequent call

        Raises:
            AuthenticationFailed: If the token endpoint does not answer 201
            TransportError: If the request fails
        """
        url = f"{self.auth_url}/oauth2/token"
        response = self._request(
            "POST",
            url,
            data={"client_id": client_id, "client_secret": client_secret},
            headers={"Content-Type": "application/x-www-form-urlencoded"}
        )

        if response.status_code != 201:
            raise AuthenticationFailed(
                "Authentication failed",
                status_code=response.status_code,
                body=response.text
            )

        try:
            token = SessionToken(**response.json())
        except (ValueError, TypeError, ValidationError) as e:
            raise AuthenticationFailed(
                "Authentication failed: malformed token response",
                status_code=response.status_code,
                body=response.text
            ) from e

        self._token = token
        return token

    def discover_targets(
        self,
        pattern: Optional[str],
        limit: int = 5000,
        criteria_type: Optional[str] = "hostname",
        raw_filter: Optional[str] = None
    ) -> List[str]:
        """
        Search the device inventory and return matching agent IDs.

        Args:
            pattern: Value to match, e.g. a hostname or hostname wildcard
            limit: Maximum number of IDs to return (default: 5000)
            criteria_type: Field the pattern is matched against (default: "hostname")
            raw_filter: Filter expression used as-is when pattern is empty

        Returns:
            List of target IDs, in the order the service returned them

        Raises:
            DiscoveryFailed: If the query endpoint does not answer 200
            TransportError: If the request fails
        """
        url = f"{self.auth_url}/devices/queries/devices/v1"
        params: Dict[str, Any] = {}

        if pattern and criteria_type:
            params["filter"] = f"{criteria_type}:'{pattern}'"
        elif raw_filter:
            params["filter"] = raw_filter

        if limit > 0:
            params["limit"] = limit

        response = self._request("GET", url, params=params, headers=self._headers())

        if response.status_code != 200:
            raise DiscoveryFailed(
                "Host search failed",
                status_code=response.status_code,
                body=response.text
            )

        try:
            result = DeviceQueryResponse(**response.json())
        except (ValueError, TypeError, ValidationError) as e:
            raise DiscoveryFailed(
                "Host search failed: malformed response",
                status_code=response.status_code,
                body=response.text
            ) from e

        return result.resources or []

    def init_session(
        self,
        target_ids: List[str],
        session_timeout: Optional[int] = None,
        session_timeout_duration: Optional[str] = None
    ) -> str:
        """
        Initialize a batch session across the given targets.

        The numeric timeout and the duration string are independent query
        parameters. Either one left as None is not sent.

        Args:
            target_ids: Agent IDs bound to the session
            session_timeout: Timeout in seconds
            session_timeout_duration: Timeout as a duration string, e.g. "30s"

        Returns:
            The batch session ID

        Raises:
            SessionInitError: If the init endpoint does not answer 201
            TransportError: If the request fails
        """
        url = f"{self.base_url}/combined/batch-init-session/v1"
        params: Dict[str, Any] = {}
        if session_timeout is not None:
            params["timeout"] = session_timeout
        if session_timeout_duration:
            params["timeout_duration"] = session_timeout_duration

        response = self._request(
            "POST",
            url,
            params=params,
            json={"host_ids": list(target_ids)},
            headers=self._headers()
        )

        if response.status_code != 201:
            raise SessionInitError(
                "Batch init failed",
                status_code=response.status_code,
                body=response.text
            )

        try:
            result = BatchInitResponse(**response.json())
        except (ValueError, TypeError, ValidationError) as e:
            raise SessionInitError(
                "Batch init failed: no batch_id in response",
                status_code=response.status_code,
                body=response.text
            ) from e

        return result.batch_id

    def run_command(
        self,
        session_id: str,
        base_command: str,
        command_string: str,
        exec_timeout: Optional[int] = None,
        exec_timeout_duration: Optional[str] = None,
        target_ids: Optional[List[str]] = None
    ) -> bytes:
        """
        Execute an admin command on the targets of a batch session.

        Args:
            session_id: Batch session ID from init_session()
            base_command: Command verb, e.g. "runscript"
            command_string: Full command line, e.g. "runscript -Raw=```ls```"
            exec_timeout: Timeout in seconds
            exec_timeout_duration: Timeout as a duration string, e.g. "10m"
            target_ids: Restrict execution to these targets of the session

        Returns:
            Raw response body, whatever the status code

        Raises:
            TransportError: If the request fails
        """
        url = f"{self.base_url}/combined/batch-admin-command/v1"
        params: Dict[str, Any] = {}
        if exec_timeout is not None:
            params["timeout"] = exec_timeout
        if exec_timeout_duration:
            params["timeout_duration"] = exec_timeout_duration

        payload: Dict[str, Any] = {
            "base_command": base_command,
            "batch_id": session_id,
            "command_string": command_string
        }
        if target_ids:
            payload["optional_hosts"] = list(target_ids)

        response = self._request(
            "POST",
            url,
            params=params,
            json=payload,
            headers=self._headers()
        )
        return response.content

    def close(self):
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
