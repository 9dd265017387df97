"""OllamaModelCatalog — lists locally installed Ollama models."""

from typing import Any

import httpx

from mcp_chat.model.infrastructure.errors import ModelCatalogError

_DEFAULT_BASE_URL = "http://localhost:11434"
_TIMEOUT = 10.0


class OllamaModelCatalog:
    """Reads the Ollama tag listing (`GET /api/tags`)."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or _DEFAULT_BASE_URL).rstrip("/")
        self._transport = transport

    async def list_models(self) -> dict[str, Any]:
        """Return the raw tag listing, e.g. {"models": [{"name": ..., ...}]}.

        Raises:
            ModelCatalogError: if Ollama is unreachable or answers with an error.
        """
        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=_TIMEOUT, transport=self._transport
        ) as client:
            try:
                response = await client.get("/api/tags")
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise ModelCatalogError(provider="ollama", reason=str(exc)) from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ModelCatalogError(
                provider="ollama", reason="response is not JSON"
            ) from exc
