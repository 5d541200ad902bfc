"""eBay Taxonomy API: category suggestions and item aspects."""
import httpx
import structlog

from src.application.interfaces.external_services import CategoryService
from src.config import settings
from src.domain.entities.aspects import AspectRequirement, CategorySuggestion
from src.infrastructure.external_services.ebay_api import EbayApiClient, EbayApiError

logger = structlog.get_logger(__name__)

MAX_QUERY_LENGTH = 100


class EbayTaxonomyClient(EbayApiClient, CategoryService):
    """Reads category metadata with an application (client-credentials) token."""

    def __init__(
        self,
        access_token: str = settings.ebay_application_token,
        category_tree_id: str = settings.ebay_category_tree_id,
        base_url: str = settings.ebay_api_url,
        marketplace_id: str = settings.ebay_marketplace_id,
        timeout: float = settings.http_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            access_token,
            base_url=base_url,
            marketplace_id=marketplace_id,
            timeout=timeout,
            transport=transport,
        )
        self._tree_path = f"/commerce/taxonomy/v1/category_tree/{category_tree_id}"

    async def suggest_category(self, title: str) -> CategorySuggestion | None:
        """
        GET .../get_category_suggestions?q=...
        → {"categorySuggestions": [{"category": {"categoryId", "categoryName"}}, ...]}

        The first suggestion is the most relevant one.
        """
        query = title.strip()[:MAX_QUERY_LENGTH]
        if not query:
            return None

        response = await self._request(
            "GET", f"{self._tree_path}/get_category_suggestions", params={"q": query}
        )
        suggestions = self._json(response).get("categorySuggestions") or []
        if not suggestions:
            logger.info("category_suggestions_empty", query=query)
            return None

        top = suggestions[0] if isinstance(suggestions, list) else None
        category = top.get("category") if isinstance(top, dict) else None
        if not isinstance(category, dict):
            raise EbayApiError(
                "eBay category suggestion is malformed",
                status_code=response.status_code,
                body=response.text,
            )
        if not category.get("categoryId"):
            return None
        return CategorySuggestion(
            category_id=str(category["categoryId"]),
            category_name=category.get("categoryName") or "",
        )

    async def get_aspect_requirements(self, category_id: str) -> list[AspectRequirement]:
        """
        GET .../get_item_aspects_for_category?category_id=...

        An unknown category yields an empty list rather than an error.
        """
        try:
            response = await self._request(
                "GET",
                f"{self._tree_path}/get_item_aspects_for_category",
                params={"category_id": category_id},
            )
        except EbayApiError as exc:
            if exc.status_code in (400, 404):
                logger.warning("category_aspects_not_found", category_id=category_id)
                return []
            raise

        requirements: list[AspectRequirement] = []
        for aspect in self._json(response).get("aspects") or []:
            if not isinstance(aspect, dict):
                continue
            name = aspect.get("localizedAspectName")
            if not name:
                continue
            constraint = aspect.get("aspectConstraint") or {}
            requirements.append(
                AspectRequirement(
                    name=name,
                    required=bool(constraint.get("aspectRequired", False)),
                    mode=constraint.get("aspectMode") or "FREE_TEXT",
                    allowed_values=tuple(
                        v["localizedValue"]
                        for v in aspect.get("aspectValues") or []
                        if isinstance(v, dict) and v.get("localizedValue")
                    ),
                )
            )
        return requirements
