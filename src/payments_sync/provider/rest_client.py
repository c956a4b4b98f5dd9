"""HTTP client for the provider's REST API."""

import base64
import hashlib
import hmac
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..exceptions import ProviderApiError, ProviderProtocolError, ProviderUnavailable
from .base import ProviderClientBase
from .models import (
    EntityQuery,
    PaymentMethodConfiguration,
    Refund,
    RefundCreate,
    Transaction,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://app-wallee.com/api"
DEFAULT_TIMEOUT = 30.0
MAC_VERSION = "1"


def compute_mac(
    application_key: str,
    user_id: int,
    timestamp: int,
    method: str,
    resource_path: str,
) -> str:
    """Compute the request authentication code.

    The signed string is ``version|user|timestamp|METHOD|path`` where ``path``
    includes the query string. The key is the base64-decoded application key.
    """
    securing_data = "|".join([
        MAC_VERSION,
        str(user_id),
        str(timestamp),
        method.upper(),
        resource_path,
    ])
    key = base64.b64decode(application_key)
    digest = hmac.new(key, securing_data.encode("utf-8"), hashlib.sha512).digest()
    return base64.b64encode(digest).decode("ascii")


class RestProviderClient(ProviderClientBase):
    """Provider API client backed by ``httpx.AsyncClient``.

    Every request is signed with the MAC headers the provider expects. No retry
    is performed here; timeouts are left to the transport.
    """

    def __init__(
        self,
        user_id: int,
        application_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_id = user_id
        self.application_key = application_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _auth_headers(self, request: httpx.Request) -> Dict[str, str]:
        timestamp = int(time.time())
        resource_path = request.url.raw_path.decode("ascii")
        return {
            "x-mac-version": MAC_VERSION,
            "x-mac-userid": str(self.user_id),
            "x-mac-timestamp": str(timestamp),
            "x-mac-value": compute_mac(
                self.application_key,
                self.user_id,
                timestamp,
                request.method,
                resource_path,
            ),
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a signed request and return the decoded JSON body.

        Raises:
            ProviderUnavailable: On transport errors.
            ProviderApiError: On non-2xx responses.
            ProviderProtocolError: If the body is not valid JSON.
        """
        client = self._get_client()
        request = client.build_request(method, f"{self.base_url}{path}", params=params, json=json)
        request.headers.update(self._auth_headers(request))

        try:
            response = await client.send(request)
        except httpx.TransportError as e:
            logger.error(f"Provider request {method} {path} failed: {e}")
            raise ProviderUnavailable(f"Failed to reach provider: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Provider returned {response.status_code} for {method} {path}")
            raise ProviderApiError(
                f"Provider API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderProtocolError(f"Invalid JSON from provider for {path}") from e

    async def search_payment_method_configurations(
        self,
        space_id: int,
        query: Optional[EntityQuery] = None,
    ) -> List[PaymentMethodConfiguration]:
        body = await self._request(
            "POST",
            "/payment-method-configuration/search",
            params={"spaceId": space_id},
            json=(query or EntityQuery()).to_payload(),
        )
        if not isinstance(body, list):
            raise ProviderProtocolError("Expected a list of payment method configurations")
        try:
            return [PaymentMethodConfiguration.model_validate(item) for item in body]
        except ValidationError as e:
            raise ProviderProtocolError(f"Invalid payment method configuration: {e}") from e

    async def refund(self, space_id: int, refund: RefundCreate) -> Refund:
        body = await self._request(
            "POST",
            "/refund/refund",
            params={"spaceId": space_id},
            json=refund.to_payload(),
        )
        try:
            return Refund.model_validate(body)
        except ValidationError as e:
            raise ProviderProtocolError(f"Invalid refund: {e}") from e

    async def read_transaction(self, space_id: int, transaction_id: int) -> Transaction:
        body = await self._request(
            "GET",
            "/transaction/read",
            params={"spaceId": space_id, "id": transaction_id},
        )
        try:
            return Transaction.model_validate(body)
        except ValidationError as e:
            raise ProviderProtocolError(f"Invalid transaction: {e}") from e
