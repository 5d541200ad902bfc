"""Shared plumbing for the eBay REST clients."""
from typing import Any

import httpx
import structlog

from src.application.interfaces.external_services import ExternalServiceError
from src.config import settings

logger = structlog.get_logger(__name__)


class EbayApiError(ExternalServiceError):
    pass


class EbayApiClient:
    """Base class: bearer-token auth, timeout and error translation."""

    def __init__(
        self,
        access_token: str,
        base_url: str = settings.ebay_api_url,
        marketplace_id: str = settings.ebay_marketplace_id,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._marketplace_id = marketplace_id
        self._timeout = timeout
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
            "Content-Language": "en-US",
            "X-EBAY-C-MARKETPLACE-ID": marketplace_id,
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request; non-2xx and transport failures raise EbayApiError."""
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    params=params,
                    json=json,
                    headers=self._headers,
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "ebay_request_failed",
                    method=method,
                    path=path,
                    status_code=exc.response.status_code,
                    response=exc.response.text,
                )
                raise EbayApiError(
                    f"eBay returned {exc.response.status_code} for {method} {path}",
                    status_code=exc.response.status_code,
                    body=exc.response.text,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("ebay_connection_failed", method=method, path=path, error=str(exc))
                raise EbayApiError(f"Failed to reach eBay: {exc}") from exc

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise EbayApiError(
                f"eBay returned invalid JSON: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(data, dict):
            raise EbayApiError(
                "eBay returned a non-object JSON body",
                status_code=response.status_code,
                body=response.text,
            )
        return data
