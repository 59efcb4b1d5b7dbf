"""
Plain HTTP client for the ShredMate API.

APIClient sends endpoint descriptors without any token handling. It is used
for public endpoints and by the token provider to call the refresh endpoint,
which must never go through the authenticating client.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from shredmate_shared.exceptions import ClientError
from shredmate_shared.interfaces import IAPIClient, ITransport
from shredmate_shared.json_coding import JSONCoding
from shredmate_shared.models import EMPTY_RESPONSE, EmptyResponse
from shredmate_client.endpoint import Endpoint
from shredmate_client.request_builder import RequestBuilder
from shredmate_client.transport import TransportResponse

logger = logging.getLogger(__name__)

_BODY_PREVIEW_LIMIT = 512


def _preview(body: bytes) -> str:
    text = body[:_BODY_PREVIEW_LIMIT].decode('utf-8', errors='replace')
    if len(body) > _BODY_PREVIEW_LIMIT:
        text += '...'
    return text


def decode_response(coding: JSONCoding, endpoint: Endpoint, response: TransportResponse) -> Any:
    """
    Interpret a transport response for an endpoint.

    Non-2xx responses raise REQUEST_FAILED. For 2xx responses an EmptyResponse
    endpoint yields the EMPTY_RESPONSE sentinel, an empty body where a value
    was expected raises NO_DATA and anything that fails to decode raises
    DECODING_FAILED.

    Args:
        coding: JSON coding used to decode the body
        endpoint: The endpoint the response belongs to
        response: Raw transport response

    Returns:
        Decoded response value

    Raises:
        ClientError: REQUEST_FAILED, NO_DATA or DECODING_FAILED
    """
    if not response.is_success:
        logger.error(
            f"{endpoint.method.value} {endpoint.path} failed with {response.status_code}: "
            f"{_preview(response.body)}"
        )
        raise ClientError.request_failed(response.status_code)

    if endpoint.response_type is EmptyResponse:
        return EMPTY_RESPONSE

    if not response.body:
        logger.error(f"{endpoint.method.value} {endpoint.path} returned an empty body")
        raise ClientError.no_data()

    try:
        return coding.decode(endpoint.response_type, response.body)
    except ValidationError as e:
        for detail in e.errors():
            location = '.'.join(str(part) for part in detail.get('loc', ()))
            logger.error(f"Decoding error at '{location}': {detail.get('msg')}")
        logger.error(f"   Response body: {_preview(response.body)}")
        raise ClientError.decoding_failed(cause=e) from e
    except ValueError as e:
        logger.error(f"Decoding error for {endpoint.path}: {e}")
        logger.error(f"   Response body: {_preview(response.body)}")
        raise ClientError.decoding_failed(cause=e) from e


class APIClient(IAPIClient):
    """
    API client without authentication support.
    """

    def __init__(
        self,
        base_url: str,
        transport: ITransport,
        coding: Optional[JSONCoding] = None,
        request_builder: Optional[RequestBuilder] = None
    ):
        self.base_url = base_url
        self.transport = transport
        self.coding = coding or JSONCoding()
        self.request_builder = request_builder or RequestBuilder(self.coding)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    async def send(self, endpoint: Endpoint) -> Any:
        """
        Build, dispatch and decode one request.

        Raises:
            ClientError: On any construction, transport, status or decode failure
        """
        request = self.request_builder.build(self.base_url, endpoint)
        logger.debug(f"{endpoint.method.value} {endpoint.path}")
        response = await self.transport.send(request)
        return decode_response(self.coding, endpoint, response)
