"""CLI entry point for EngBuddy."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional
import click
import structlog

from ..config.settings import settings
from ..core.conversation_manager import ConversationManager, ConversationConfig
from ..core.playback import PlaybackError, PLAYBACK_NOTICE
from ..providers import registry
from ..utils.logging import setup_logging
from .frontend import TerminalFrontend


logger = structlog.get_logger()


def validate_provider(ctx, param, value):
    """Validate provider selection."""
    if param.name == "chat_provider":
        valid_providers = registry.list_chat_providers()
        provider_type = "chat"
    elif param.name == "speech_provider":
        valid_providers = registry.list_speech_providers()
        provider_type = "speech"
    else:
        return value

    if value not in valid_providers:
        raise click.BadParameter(
            f"Invalid {provider_type} provider '{value}'. "
            f"Available options: {', '.join(valid_providers)}"
        )
    return value


def _configure(debug: bool, config: Optional[str]) -> None:
    if config:
        settings.config_file = Path(config)
        settings.load_from_file()

    setup_logging(
        debug=debug,
        log_file=settings.logging.file_enabled,
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        file_rotation_mb=settings.logging.file_rotation_mb,
        file_backup_count=settings.logging.file_backup_count,
    )

    for issue in settings.validate():
        logger.warning("Configuration issue", issue=issue)


def _build_manager(
    chat_provider: str, speech_provider: str, mock: bool, silent: bool
) -> ConversationManager:
    conversation_config = ConversationConfig(
        chat_provider=chat_provider,
        speech_provider=speech_provider,
        mock_mode=mock,
        silent_audio=silent,
    )
    return ConversationManager(conversation_config, settings)


provider_options = [
    click.option(
        "--chat-provider",
        callback=validate_provider,
        default="gemini",
        help="Chat provider to use",
    ),
    click.option(
        "--speech-provider",
        callback=validate_provider,
        default="elevenlabs",
        help="Speech provider to use",
    ),
    click.option("--mock", is_flag=True, help="Run with canned replies (no API calls)"),
    click.option("--silent", is_flag=True, help="Skip the audio device when playing speech"),
    click.option("--debug", is_flag=True, help="Enable debug logging"),
    click.option(
        "--config", type=click.Path(exists=True), help="Path to configuration file"
    ),
]


def with_provider_options(func):
    for option in reversed(provider_options):
        func = option(func)
    return func


@click.command()
@with_provider_options
def chat(
    chat_provider: str,
    speech_provider: str,
    mock: bool,
    silent: bool,
    debug: bool,
    config: Optional[str],
):
    """
    Start an interactive tutoring session.

    Type English sentences or questions. Replies can be read aloud with
    /play. Type /help for all commands.
    """
    _configure(debug, config)

    manager = _build_manager(chat_provider, speech_provider, mock, silent)
    frontend = TerminalFrontend(manager)

    click.echo(click.style("🎓 EngBuddy - 중학 영어 수행평가 멘토", fg="green", bold=True))
    if mock:
        click.echo(
            click.style("⚠️  Running in MOCK mode - no API calls will be made", fg="yellow")
        )

    try:
        manager.start()
        asyncio.run(frontend.run())
    except KeyboardInterrupt:
        click.echo("\n\nShutting down...")
    finally:
        manager.stop()

    click.echo("\n👋 Goodbye!")


@click.command()
@click.option("--input", "-i", "text", help="Message to send (reads stdin if omitted)")
@click.option("--speak", is_flag=True, help="Read the reply aloud")
@click.option("--json", "json_output", is_flag=True, help="Output the reply as JSON")
@with_provider_options
def ask(
    text: Optional[str],
    speak: bool,
    json_output: bool,
    chat_provider: str,
    speech_provider: str,
    mock: bool,
    silent: bool,
    debug: bool,
    config: Optional[str],
):
    """
    Send a single message and print the reply.

    Examples:
    \b
        engbuddy ask --input "Fix this sentence: I has a dog."
        echo "주제 추천해줘" | engbuddy ask --mock
    """
    _configure(debug, config)

    text = (text or "").strip()
    if not text:
        text = sys.stdin.read().strip()
        if not text:
            click.echo("Error: No input provided", err=True)
            sys.exit(1)

    manager = _build_manager(chat_provider, speech_provider, mock, silent)
    manager.start()

    async def _ask():
        reply = await manager.submit(text)
        played = None
        if speak and reply is not None:
            try:
                played = await manager.play(reply.id)
            except PlaybackError:
                played = False
                click.echo(PLAYBACK_NOTICE, err=True)
        return reply, played

    try:
        reply, played = asyncio.run(_ask())
    finally:
        manager.stop()

    failed = reply.text == manager.session.error_text

    if json_output:
        click.echo(
            json.dumps(
                {
                    "input": text,
                    "response": reply.text,
                    "error": failed,
                    "played": played,
                    "chat_provider": "mock" if mock else chat_provider,
                },
                indent=2,
                ensure_ascii=False,
            )
        )
    else:
        click.echo(reply.text)

    if failed:
        sys.exit(1)


@click.command()
def providers():
    """List available providers."""
    click.echo("🔌 Available Providers")
    click.echo("-" * 50)

    chat_providers = registry.list_chat_providers()
    click.echo(f"\n🤖 Chat Providers ({len(chat_providers)})")
    for provider in chat_providers:
        click.echo(f"  - {provider}")

    speech_providers = registry.list_speech_providers()
    click.echo(f"\n🔊 Speech Providers ({len(speech_providers)})")
    for provider in speech_providers:
        click.echo(f"  - {provider}")

    click.echo("\nUse --chat-provider / --speech-provider to select a provider.")


cli = click.Group(help="EngBuddy, an English writing tutor.")
cli.add_command(chat)
cli.add_command(ask)
cli.add_command(providers)


if __name__ == "__main__":
    cli()
