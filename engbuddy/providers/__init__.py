"""Provider interfaces and implementations for chat and speech."""

from .registry import registry

# Defer provider registration to avoid circular imports
def _register_all_providers():
    """Register all provider types."""
    from . import chat, speech
    chat.register_providers()
    speech.register_providers()

_register_all_providers()

__all__ = ['registry']
