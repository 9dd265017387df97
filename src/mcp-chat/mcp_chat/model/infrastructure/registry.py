"""Model provider registry — maps ModelConfig.provider to a ModelInvoker."""

from mcp_chat.config.domain.model import ModelConfig
from mcp_chat.model.domain.invoker import ModelInvoker
from mcp_chat.model.domain.observer import ModelObserver
from mcp_chat.model.infrastructure.errors import ModelProviderNotSupportedError
from mcp_chat.model.infrastructure.litellm import LiteLLMModelInvoker

# Provider name in config -> LiteLLM route prefix.
_PROVIDER_ROUTES: dict[str, str] = {
    "openai": "openai",
    "azureopenai": "azure",
    "ollama": "ollama_chat",
    "anthropic": "anthropic",
}


def supported_providers() -> list[str]:
    return sorted(_PROVIDER_ROUTES)


def create_model_invoker(config: ModelConfig, observer: ModelObserver) -> ModelInvoker:
    """Return the ModelInvoker variant for the given ModelConfig.

    Raises:
        ModelProviderNotSupportedError: if config.provider is not a known provider.
    """
    route = _PROVIDER_ROUTES.get(config.provider)
    if route is None:
        raise ModelProviderNotSupportedError(
            provider=config.provider, supported=supported_providers()
        )
    return LiteLLMModelInvoker(config=config, route=route, observer=observer)
