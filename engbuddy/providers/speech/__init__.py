"""Speech synthesis providers."""


def register_providers():
    """Register all speech providers."""
    # Import at function level to avoid circular imports
    from ..registry import registry
    from .elevenlabs import ElevenLabsSpeechProvider

    def get_elevenlabs_config(settings):
        return settings.get_provider_config("elevenlabs")

    registry.register_speech_provider(
        "elevenlabs", ElevenLabsSpeechProvider, get_elevenlabs_config
    )
