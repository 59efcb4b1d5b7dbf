"""
Request descriptors for the ShredMate API.

An Endpoint describes one API call (method, path, query, headers, auth
requirement, body and the expected response type) and is immutable once
created. Descriptors are turned into concrete requests by the RequestBuilder.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from shredmate_shared.models import EmptyResponse


class HTTPMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class AuthRequirement(Enum):
    """Whether a request must carry a bearer access token."""
    NONE = "none"
    BEARER_TOKEN = "bearer_token"


@dataclass(frozen=True)
class NoBody:
    """Request without a body."""


@dataclass(frozen=True)
class JSONBody:
    """Request body serialized as canonical JSON."""
    value: Any


@dataclass(frozen=True)
class RawBody:
    """Pre-encoded request body sent as-is."""
    data: bytes
    content_type: str


@dataclass(frozen=True)
class MultipartBody:
    """Single-file multipart/form-data upload."""
    file_data: bytes
    file_name: str
    mime_type: str
    field_name: str = "file"

    def build_body(self, boundary: str) -> bytes:
        """
        Encode the part for the given boundary.

        Args:
            boundary: Boundary token without the leading dashes

        Returns:
            The complete multipart body including the closing delimiter
        """
        head = (
            f"--{boundary}\r\n"
            f"Content-Disposition: form-data; name=\"{self.field_name}\"; "
            f"filename=\"{self.file_name}\"\r\n"
            f"Content-Type: {self.mime_type}\r\n"
            f"\r\n"
        ).encode('utf-8')
        tail = f"\r\n--{boundary}--\r\n".encode('utf-8')
        return head + self.file_data + tail


RequestBody = Union[NoBody, JSONBody, RawBody, MultipartBody]

QueryItems = Tuple[Tuple[str, str], ...]


def _freeze_query(query: Optional[Sequence[Tuple[str, Any]]]) -> QueryItems:
    if not query:
        return ()
    return tuple((str(key), str(value)) for key, value in query)


@dataclass(frozen=True)
class Endpoint:
    """
    Immutable description of one API call.

    ``response_type`` is what a successful body decodes into: a model class,
    a ``List[...]`` of one, or ``EmptyResponse`` for endpoints without a body.
    """
    method: HTTPMethod
    path: str
    response_type: Any = EmptyResponse
    query: QueryItems = ()
    headers: Dict[str, str] = field(default_factory=dict)
    auth: AuthRequirement = AuthRequirement.NONE
    body: RequestBody = field(default_factory=NoBody)

    def __post_init__(self):
        # Copy the mutable inputs so callers cannot change a built descriptor
        object.__setattr__(self, 'query', _freeze_query(self.query))
        object.__setattr__(self, 'headers', dict(self.headers))

    def __hash__(self) -> int:
        return hash((self.method, self.path, self.query, tuple(sorted(self.headers.items())), self.auth))

    @property
    def requires_auth(self) -> bool:
        return self.auth == AuthRequirement.BEARER_TOKEN

    @classmethod
    def get(
        cls,
        path: str,
        response_type: Any = EmptyResponse,
        query: Optional[Sequence[Tuple[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: AuthRequirement = AuthRequirement.NONE
    ) -> 'Endpoint':
        """Create a GET endpoint."""
        return cls(HTTPMethod.GET, path, response_type, _freeze_query(query), headers or {}, auth)

    @classmethod
    def post(
        cls,
        path: str,
        response_type: Any = EmptyResponse,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        auth: AuthRequirement = AuthRequirement.NONE
    ) -> 'Endpoint':
        """Create a POST endpoint, with a JSON body when ``body`` is given."""
        return cls(HTTPMethod.POST, path, response_type, (), headers or {}, auth, _json_or_empty(body))

    @classmethod
    def put(
        cls,
        path: str,
        response_type: Any = EmptyResponse,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        auth: AuthRequirement = AuthRequirement.NONE
    ) -> 'Endpoint':
        """Create a PUT endpoint with a JSON body."""
        return cls(HTTPMethod.PUT, path, response_type, (), headers or {}, auth, _json_or_empty(body))

    @classmethod
    def patch(
        cls,
        path: str,
        response_type: Any = EmptyResponse,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        auth: AuthRequirement = AuthRequirement.NONE
    ) -> 'Endpoint':
        """Create a PATCH endpoint with a JSON body."""
        return cls(HTTPMethod.PATCH, path, response_type, (), headers or {}, auth, _json_or_empty(body))

    @classmethod
    def delete(
        cls,
        path: str,
        response_type: Any = EmptyResponse,
        headers: Optional[Dict[str, str]] = None,
        auth: AuthRequirement = AuthRequirement.NONE
    ) -> 'Endpoint':
        """Create a DELETE endpoint."""
        return cls(HTTPMethod.DELETE, path, response_type, (), headers or {}, auth)

    @classmethod
    def upload_multipart(
        cls,
        path: str,
        multipart: MultipartBody,
        response_type: Any = EmptyResponse,
        headers: Optional[Dict[str, str]] = None,
        auth: AuthRequirement = AuthRequirement.NONE
    ) -> 'Endpoint':
        """Create a POST endpoint carrying a multipart file upload."""
        return cls(HTTPMethod.POST, path, response_type, (), headers or {}, auth, multipart)


def _json_or_empty(body: Any) -> RequestBody:
    if body is None:
        return NoBody()
    if isinstance(body, (NoBody, JSONBody, RawBody, MultipartBody)):
        return body
    return JSONBody(body)
