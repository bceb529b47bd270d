"""
Per-connection Elasticsearch transport.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from elasticsearch import Elasticsearch

from config.environments import get_transport_config
from mcp_types.connections import ConnectionProfile
from utils.errors import ElasticOperationError, from_transport_exception


logger = logging.getLogger(__name__)

JSON_HEADERS = {"accept": "application/json", "content-type": "application/json"}


def _unwrap(response: Any) -> Any:
    """Plain dict/list from an `ApiResponse` (or an already-plain value)."""
    return getattr(response, "body", response)


def build_elasticsearch(
    profile: ConnectionProfile,
    timeout_ms: int,
    verify_certs: bool,
) -> Elasticsearch:
    """
    Create an Elasticsearch client for a connection profile.

    Args:
        profile: Connection to use
        timeout_ms: Per-request timeout
        verify_certs: Whether to verify TLS certificates

    Returns:
        Configured Elasticsearch client
    """
    params: Dict[str, Any] = {
        "hosts": [profile.url],
        "request_timeout": timeout_ms / 1000.0,
        "verify_certs": verify_certs,
    }

    if profile.username and profile.password:
        params["basic_auth"] = (profile.username, profile.password)

    if profile.headers:
        params["headers"] = dict(profile.headers)

    if not verify_certs:
        params["ssl_show_warn"] = False

    return Elasticsearch(**params)


class TransportClient:
    """
    Authenticated requests against one Elasticsearch base URL.

    Every failure is raised as ElasticOperationError. Connection-level
    failures are classified recoverable; HTTP errors carry the response body.
    """

    def __init__(
        self,
        profile: ConnectionProfile,
        es: Optional[Elasticsearch] = None,
        timeout_ms: Optional[int] = None,
        verify_certs: Optional[bool] = None,
    ):
        config = get_transport_config()
        self.profile = profile.snapshot()
        self.timeout_ms = timeout_ms if timeout_ms is not None else config["timeout_ms"]
        verify = verify_certs if verify_certs is not None else config["verify_certs"]
        self._es = es if es is not None else build_elasticsearch(self.profile, self.timeout_ms, verify)

    @property
    def es(self) -> Elasticsearch:
        return self._es

    @property
    def url(self) -> str:
        return self.profile.url

    def call(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Invoke a client method, translating its failures.

        Args:
            operation: Human name for messages and logs
            func: Bound Elasticsearch client method

        Returns:
            Unwrapped response body
        """
        logger.debug("%s on %s", operation, self.profile.name or self.profile.id)
        try:
            return _unwrap(func(*args, **kwargs))
        except Exception as e:
            details = from_transport_exception(
                e, url=self.url, timeout_ms=self.timeout_ms, operation=operation,
            )
            logger.debug("%s failed: %s (%s)", operation, details.code, details.details)
            raise ElasticOperationError(details) from e

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue a REST call with a JSON body."""
        if not path.startswith("/"):
            path = "/" + path
        headers = dict(JSON_HEADERS) if body is not None else {"accept": "application/json"}
        return self.call(
            f"{method} {path}",
            self._es.perform_request,
            method,
            path,
            params=params,
            headers=headers,
            body=body,
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("POST", path, body=body, params=params)

    def put(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("PUT", path, body=body, params=params)

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("DELETE", path, params=params)

    def info(self) -> Dict[str, Any]:
        return self.call("Cluster info", self._es.info)

    def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.call("Search", self._es.search, index=index, body=body)

    def create_index(self, index: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.put(f"/{index}", body=body or {})

    def bulk(self, ndjson: str) -> List[Dict[str, Any]]:
        """
        Submit a pre-built NDJSON bulk body.

        Args:
            ndjson: Action/document lines, newline-terminated

        Returns:
            The raw per-item result array, unmodified
        """
        response = self.call("Bulk", self._es.bulk, operations=ndjson)
        return response.get("items", [])

    def bulk_response(self, ndjson: str) -> Dict[str, Any]:
        """Submit a bulk body and return the whole response."""
        return self.call("Bulk", self._es.bulk, operations=ndjson)

    def close(self) -> None:
        self._es.close()
