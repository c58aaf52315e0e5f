"""Chat providers."""


def register_providers():
    """Register all chat providers."""
    # Import at function level to avoid circular imports
    from ..registry import registry
    from .gemini import GeminiChatProvider

    def get_gemini_config(settings):
        return settings.get_provider_config("gemini")

    registry.register_chat_provider("gemini", GeminiChatProvider, get_gemini_config)
