"""
Request building for the ShredMate API.

Turns an Endpoint plus a base URL into a PreparedRequest. Building is pure:
no token or network state is consulted here.
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Optional
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from shredmate_shared.exceptions import ClientError
from shredmate_shared.json_coding import JSONCoding
from shredmate_client.endpoint import Endpoint, JSONBody, MultipartBody, NoBody, RawBody

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRequest:
    """Concrete HTTP request ready to be dispatched by a transport."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    def with_header(self, name: str, value: str) -> 'PreparedRequest':
        """Return a copy with one header set (replacing any existing value)."""
        headers = dict(self.headers)
        headers[name] = value
        return replace(self, headers=headers)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class RequestBuilder:
    """Builds PreparedRequests from endpoint descriptors."""

    def __init__(self, coding: Optional[JSONCoding] = None):
        self.coding = coding or JSONCoding()

    def build(self, base_url: str, endpoint: Endpoint) -> PreparedRequest:
        """
        Build the concrete request for an endpoint.

        Args:
            base_url: Backend base URL, optionally with a path prefix
            endpoint: Request descriptor

        Returns:
            PreparedRequest with URL, headers and encoded body

        Raises:
            ClientError: INVALID_URL if the URL cannot be composed,
                ENCODING_FAILED if the JSON body cannot be serialized
        """
        url = self._compose_url(base_url, endpoint)

        headers: Dict[str, str] = dict(endpoint.headers)

        body: Optional[bytes] = None
        payload = endpoint.body

        if isinstance(payload, NoBody):
            pass
        elif isinstance(payload, JSONBody):
            try:
                body = self.coding.encode(payload.value)
            except (TypeError, ValueError) as e:
                logger.error(f"Failed to encode body for {endpoint.method.value} {endpoint.path}: {e}")
                raise ClientError.encoding_failed(cause=e) from e
            headers['Content-Type'] = 'application/json'
        elif isinstance(payload, RawBody):
            body = payload.data
            headers['Content-Type'] = payload.content_type
        elif isinstance(payload, MultipartBody):
            boundary = f"Boundary-{uuid.uuid4()}"
            body = payload.build_body(boundary)
            headers['Content-Type'] = f"multipart/form-data; boundary={boundary}"
        else:
            raise ClientError.encoding_failed(
                cause=TypeError(f"Unsupported body type: {type(payload).__name__}")
            )

        return PreparedRequest(
            method=endpoint.method.value,
            url=url,
            headers=headers,
            body=body
        )

    def _compose_url(self, base_url: str, endpoint: Endpoint) -> str:
        try:
            parts = urlsplit(base_url)
        except ValueError as e:
            raise ClientError.invalid_url(base_url) from e

        if not parts.scheme or not parts.netloc:
            raise ClientError.invalid_url(base_url)

        path = endpoint.path
        if not path.startswith('/'):
            path = '/' + path
        full_path = parts.path.rstrip('/') + quote(path, safe='/%')

        query = urlencode(list(endpoint.query), quote_via=quote) if endpoint.query else ''

        try:
            return urlunsplit((parts.scheme, parts.netloc, full_path, query, ''))
        except ValueError as e:
            raise ClientError.invalid_url(base_url + path) from e
