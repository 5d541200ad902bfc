"""Listing title/description rewriting with Claude."""
import json
import re

import anthropic
import structlog

from src.application.interfaces.external_services import (
    ContentGenerator,
    ContentRequest,
    ExternalServiceError,
    GeneratedContent,
)
from src.config import settings
from src.domain.entities.product_draft import MAX_TITLE_LENGTH

logger = structlog.get_logger(__name__)

# References to the source marketplace that must not leak into a listing
COMPETITOR_REFERENCES = (
    re.compile(r"\bFulfilled by Amazon\b", re.IGNORECASE),
    re.compile(r"\bAmazon's Choice\b", re.IGNORECASE),
    re.compile(r"\bAmazon\.com\b", re.IGNORECASE),
    re.compile(r"\bAmazon\b", re.IGNORECASE),
    re.compile(r"\bPrime\b", re.IGNORECASE),
    re.compile(r"\bFBA\b", re.IGNORECASE),
    re.compile(r"\bBest Seller\b", re.IGNORECASE),
    re.compile(r"\bA\+\s*Content\b", re.IGNORECASE),
)

_WHITESPACE = re.compile(r"\s+")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

PROMPT_TEMPLATE = """You are an eBay listing optimization expert. Generate an optimized title and description for this product.

PRODUCT DATA:
- Original Title: {title}
- Brand: {brand}
- Model: {model}
- Color: {color}
- Size: {size}
- Category: {category}
- Features: {features}

REQUIREMENTS FOR TITLE:
1. MUST be 75 characters or less
2. Include brand name first if available
3. Include model number/name if available
4. Include key attributes (color, size) if they fit
5. Use common search terms buyers would use
6. NO special characters except hyphens and commas
7. NO words like "Amazon", "Prime", "Best Seller"

REQUIREMENTS FOR DESCRIPTION:
1. Valid HTML format
2. Start with <h3>Product Description</h3>
3. List features as <ul><li> bullet points
4. Be concise but informative
5. NO mentions of Amazon, Prime, or competitor platforms
6. Professional tone suitable for eBay

Respond in this exact JSON format:
{{
  "title": "Your optimized title here",
  "description": "<h3>Product Description</h3><p>Brief intro</p><ul><li>Feature 1</li></ul>"
}}

Only respond with the JSON, no other text."""


class ContentGenerationError(ExternalServiceError):
    pass


def sanitize_content(text: str | None) -> str:
    """Drop competitor references and collapse whitespace."""
    if not text:
        return ""
    for pattern in COMPETITOR_REFERENCES:
        text = pattern.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def safe_trim_title(title: str | None, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Trim to ``max_length``, cutting at the last complete word when possible."""
    if not title:
        return ""
    title = title.strip()
    if len(title) <= max_length:
        return title
    trimmed = title[:max_length]
    last_space = trimmed.rfind(" ")
    return trimmed[:last_space] if last_space > 0 else trimmed


def build_prompt(request: ContentRequest) -> str:
    features = [f for f in (sanitize_content(f) for f in request.features) if f]
    return PROMPT_TEMPLATE.format(
        title=sanitize_content(request.title),
        brand=request.brand or "Not specified",
        model=request.model or "Not specified",
        color=request.color or "Not specified",
        size=request.size or "Not specified",
        category=request.category_name or "General",
        features="; ".join(features) if features else "None provided",
    )


def parse_content_response(response_text: str) -> dict[str, str]:
    """Pull the JSON object out of the reply, tolerating markdown fences."""
    cleaned = response_text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned)
        cleaned = re.sub(r"\s*```$", "", cleaned)

    match = _JSON_OBJECT.search(cleaned)
    try:
        data = json.loads(match.group(0) if match else cleaned)
    except json.JSONDecodeError as exc:
        logger.error("content_json_parse_failed", response_preview=response_text[:500])
        raise ContentGenerationError(f"Invalid content response: {exc}") from exc

    if not isinstance(data, dict):
        raise ContentGenerationError("Content response is not a JSON object")
    return data


class AnthropicContentGenerator(ContentGenerator):
    def __init__(
        self,
        api_key: str = settings.anthropic_api_key,
        model: str = settings.anthropic_model,
        max_tokens: int = settings.anthropic_max_tokens,
        timeout: float = settings.http_timeout_seconds,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def generate(self, request: ContentRequest) -> GeneratedContent:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": build_prompt(request)}],
            )
        except anthropic.APIError as exc:
            logger.error("claude_api_error", error=str(exc))
            raise ContentGenerationError(f"Claude API error: {exc}") from exc

        response_text = response.content[0].text
        logger.debug("claude_response_received", response_length=len(response_text))

        data = parse_content_response(response_text)
        title = safe_trim_title(sanitize_content(data.get("title")))
        if not title:
            raise ContentGenerationError("Generated title is empty")

        return GeneratedContent(
            title=title,
            description=sanitize_content(data.get("description")),
            model=self._model,
        )
