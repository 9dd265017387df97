"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, provider: str, model: str) -> None:
        self._log.info("config.loaded", name=name, provider=provider, model=model)

    def config_api_key_missing_warning(self, provider: str) -> None:
        self._log.warning(
            "config.api_key_missing",
            provider=provider,
            message="No api_key configured; the provider's own environment variable will be used if set",
        )
