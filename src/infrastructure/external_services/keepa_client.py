"""HTTP client for the Keepa product catalog."""
from typing import Any

import httpx
import structlog

from src.application.interfaces.external_services import CatalogClient, ExternalServiceError
from src.config import settings

logger = structlog.get_logger(__name__)


class KeepaClientError(ExternalServiceError):
    pass


class KeepaClient(CatalogClient):
    """Thin HTTP wrapper around the Keepa /product endpoint."""

    def __init__(
        self,
        base_url: str = settings.keepa_api_url,
        api_key: str = settings.keepa_api_key,
        domain: int = settings.keepa_domain,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._domain = domain
        self._timeout = timeout
        self._transport = transport

    async def fetch_product(self, external_product_id: str) -> dict[str, Any] | None:
        """
        GET /product?key=...&domain=1&asin=... → {"products": [{...}], "tokensLeft": N}

        Returns the first product, or None when Keepa has no record for the ASIN.
        """
        params = {
            "key": self._api_key,
            "domain": self._domain,
            "asin": external_product_id,
            "stats": 180,
            "offers": 20,
        }

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.get(f"{self._base_url}/product", params=params)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "keepa_request_failed",
                    asin=external_product_id,
                    status_code=exc.response.status_code,
                    response=exc.response.text,
                )
                raise KeepaClientError(
                    f"Keepa returned {exc.response.status_code}",
                    status_code=exc.response.status_code,
                    body=exc.response.text,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("keepa_connection_failed", asin=external_product_id, error=str(exc))
                raise KeepaClientError(f"Failed to reach Keepa: {exc}") from exc
            except ValueError as exc:
                raise KeepaClientError(f"Keepa returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise KeepaClientError("Keepa returned a non-object JSON body", body=response.text)
        products = data.get("products") or []
        product = products[0] if isinstance(products, list) and products else None
        if product is not None and not isinstance(product, dict):
            raise KeepaClientError("Keepa product record is malformed", body=response.text)
        # Keepa answers unknown ASINs with a stub record that has no title
        if not product or not product.get("title"):
            logger.info("keepa_product_not_found", asin=external_product_id)
            return None

        logger.info(
            "keepa_product_fetched",
            asin=external_product_id,
            tokens_left=data.get("tokensLeft"),
        )
        return product
