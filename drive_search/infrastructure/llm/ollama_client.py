import logging

from openai import APIError, AsyncOpenAI
from pydantic import ValidationError

from drive_search.core.errors import MalformedProviderResponse, ProviderUnavailable
from drive_search.core.models.query import QueryUnderstanding

logger = logging.getLogger(__name__)

UNDERSTAND_SYSTEM_PROMPT = """You route queries for a document search engine over a company's shared files.

Reply with ONE JSON object and nothing else:
{"should_search": <bool>, "rewritten_query": <string>, "suggested_threshold": <number or null>}

should_search:
- true if the user is looking for documents, files, facts or procedures that may be in the files.
- false only for greetings, thanks, small talk or messages with no information need.
- If unsure, use true.

rewritten_query:
- The query reformulated for semantic search: keep names, numbers and key terms,
  drop filler words and politeness. Keep the user's language.
- If no rewrite helps, repeat the query unchanged.

suggested_threshold:
- Minimum cosine similarity for a document to count as relevant, between 0.1 and 0.9.
- Lower (0.2-0.3) for broad or exploratory queries, higher (0.5-0.6) for exact lookups.
- null if you have no opinion."""


class OllamaUnderstandingClient:
    """Query understanding via an LLM (Ollama, OpenAI-compatible API)."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434/v1",
        model: str = "qwen2.5:7b",
        max_tokens: int = 256,
        temperature: float = 0.0,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API URL.
            model: Model name.
            max_tokens: Max response tokens.
            temperature: Sampling temperature.
        """
        self._client = AsyncOpenAI(base_url=base_url, api_key="ollama")
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def understand(self, query: str) -> QueryUnderstanding:
        """Classify and rewrite a query.

        The reply is parsed once as strict JSON; anything else is rejected.

        Args:
            query: Raw user query.

        Returns:
            Validated understanding.
        """
        messages = [
            {"role": "system", "content": UNDERSTAND_SYSTEM_PROMPT},
            {"role": "user", "content": query},
        ]

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                response_format={"type": "json_object"},
            )
        except APIError as e:
            raise ProviderUnavailable(f"LLM request failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise MalformedProviderResponse("LLM returned no content")

        content = response.choices[0].message.content
        try:
            result = QueryUnderstanding.model_validate_json(content)
        except ValidationError as e:
            raise MalformedProviderResponse(
                f"LLM output does not match schema: {e.error_count()} error(s)"
            ) from e

        logger.info(
            f"[understand] search={result.should_search} "
            f"threshold={result.suggested_threshold} for '{query[:60]}'"
        )
        return result

    async def ping(self) -> bool:
        try:
            await self._client.models.list()
        except APIError as e:
            logger.warning(f"LLM endpoint unavailable: {e}")
            return False
        return True
