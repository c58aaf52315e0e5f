"""Provider registry for dynamic provider loading."""

from typing import Any, Callable, Dict, Optional, Type
import structlog

from ..config.settings import Settings
from .chat.base import ChatProvider
from .speech.base import SpeechProvider


logger = structlog.get_logger()


ConfigGetter = Callable[[Settings], Dict[str, Any]]


class ProviderRegistry:
    """Registry for managing provider implementations."""

    def __init__(self):
        self._chat_providers: Dict[str, Type[ChatProvider]] = {}
        self._speech_providers: Dict[str, Type[SpeechProvider]] = {}
        self._provider_configs: Dict[str, ConfigGetter] = {}

    def register_chat_provider(
        self,
        name: str,
        provider_class: Type[ChatProvider],
        config_getter: Optional[ConfigGetter] = None,
    ) -> None:
        """Register a chat provider."""
        self._chat_providers[name] = provider_class
        if config_getter:
            self._provider_configs[f"chat:{name}"] = config_getter
        logger.debug(
            "Registered chat provider", name=name, class_name=provider_class.__name__
        )

    def register_speech_provider(
        self,
        name: str,
        provider_class: Type[SpeechProvider],
        config_getter: Optional[ConfigGetter] = None,
    ) -> None:
        """Register a speech provider."""
        self._speech_providers[name] = provider_class
        if config_getter:
            self._provider_configs[f"speech:{name}"] = config_getter
        logger.debug(
            "Registered speech provider", name=name, class_name=provider_class.__name__
        )

    def _merge_config(
        self, config_key: str, settings: Optional[Settings], kwargs: Dict[str, Any]
    ) -> Dict[str, Any]:
        # Explicit keyword arguments win over configured values
        if settings is None or config_key not in self._provider_configs:
            return kwargs
        config = self._provider_configs[config_key](settings)
        config.update(kwargs)
        return config

    def get_chat_provider(
        self, name: str, settings: Optional[Settings] = None, **kwargs
    ) -> ChatProvider:
        """Get a chat provider instance, configured from settings when given."""
        if name not in self._chat_providers:
            raise ValueError(f"Unknown chat provider: {name}")
        kwargs = self._merge_config(f"chat:{name}", settings, kwargs)
        return self._chat_providers[name](**kwargs)

    def get_speech_provider(
        self, name: str, settings: Optional[Settings] = None, **kwargs
    ) -> SpeechProvider:
        """Get a speech provider instance, configured from settings when given."""
        if name not in self._speech_providers:
            raise ValueError(f"Unknown speech provider: {name}")
        kwargs = self._merge_config(f"speech:{name}", settings, kwargs)
        return self._speech_providers[name](**kwargs)

    def list_chat_providers(self) -> list[str]:
        """List available chat providers."""
        return list(self._chat_providers.keys())

    def list_speech_providers(self) -> list[str]:
        """List available speech providers."""
        return list(self._speech_providers.keys())

    def clear(self) -> None:
        """Clear all registered providers."""
        self._chat_providers.clear()
        self._speech_providers.clear()
        self._provider_configs.clear()


# Global registry instance
registry = ProviderRegistry()
