"""
HTTP client for the finalize-invitation endpoint.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from shared.validation import sanitize_error

from .exceptions import FinalizeInvitationError
from .interfaces import IInvitationFinalizer
from .models import AcceptInvitationRequest

logger = logging.getLogger(__name__)


class HttpInvitationFinalizer(IInvitationFinalizer):
    """
    POSTs the acceptance payload to the API.

    The caller's access token is sent as a bearer token; the endpoint
    checks that it belongs to the identity being finalized. Pass
    ``token_provider`` to read the token at call time, after any refresh.
    """

    def __init__(
        self,
        url: str,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_provider: Optional[Callable[[], Awaitable[Optional[str]]]] = None,
    ):
        self._url = url
        self._access_token = access_token
        self._token_provider = token_provider
        self._timeout = timeout
        self._transport = transport

    async def finalize(self, request: AcceptInvitationRequest) -> dict[str, Any]:
        headers = {"Content-Type": "application/json"}
        token = await self._token_provider() if self._token_provider else self._access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(
                    self._url,
                    json=request.model_dump(),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.debug("Finalize invitation request failed: %s", e)
            raise FinalizeInvitationError("Network error; please try again")

        if not response.is_success:
            raise FinalizeInvitationError(
                self._error_message(response),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            raise FinalizeInvitationError(
                "Invalid response from server",
                status_code=response.status_code,
            )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
            return sanitize_error(body["error"])
        return f"Request failed with status {response.status_code}"
