"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, provider: str, model: str) -> None: ...

    def config_api_key_missing_warning(self, provider: str) -> None: ...
