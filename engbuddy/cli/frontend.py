"""Terminal rendering of the conversation."""

import json
from typing import Callable, Optional
import click
import structlog

from ..core.conversation_manager import ConversationManager
from ..core.playback import PlaybackError, PLAYBACK_NOTICE
from ..core.quick_actions import QUICK_ACTIONS, QuickAction, fill_template
from ..state.conversation_log import Message


logger = structlog.get_logger()


THINKING_TEXT = "생각하는 중..."
INPUT_PROMPT = "영어 문장을 입력하거나 질문해보세요"

HELP_TEXT = """\
명령어:
  /1 ~ /4     빠른 질문 (주제 추천, 문법 교정, 표현 다듬기, 도움말)
  /play [n]   n번 답변 발음 듣기 (생략하면 마지막 답변)
  /status     상태 보기
  /help       도움말
  /quit       종료"""


class TerminalFrontend:
    """
    Prints the conversation log and turns typed lines into session calls.

    Subscribes to the session so every log change is rendered as it
    happens: the student's line, the thinking placeholder, then the reply.
    """

    def __init__(self, manager: ConversationManager, echo: Callable[..., None] = click.echo):
        self.manager = manager
        self.echo = echo
        self.template: Optional[QuickAction] = None
        manager.add_log_listener(self.on_log_change)

    def position_of(self, message: Message) -> int:
        for position, entry in enumerate(self.manager.session.messages, start=1):
            if entry.id == message.id:
                return position
        return 0

    def render(self, message: Message) -> None:
        position = self.position_of(message)
        if message.is_user:
            self.echo(click.style(f"[{position}] 나: ", fg="blue", bold=True) + message.text)
        elif message.pending:
            self.echo(click.style(f"[{position}] EngBuddy: {THINKING_TEXT}", fg="yellow"))
        else:
            self.echo(click.style(f"[{position}] EngBuddy: ", fg="green", bold=True) + message.text)
            self.echo(click.style(f"    (/play {position} 발음 듣기)", dim=True))

    def on_log_change(self, message: Message) -> None:
        self.render(message)

    def show_welcome(self) -> None:
        for message in self.manager.session.messages:
            self.render(message)
        self.show_quick_actions()

    def show_quick_actions(self) -> None:
        labels = "  ".join(
            f"/{index} {action.label}" for index, action in enumerate(QUICK_ACTIONS, start=1)
        )
        self.echo(click.style(labels, fg="cyan"))

    def _find_playable(self, argument: str) -> Optional[Message]:
        messages = self.manager.session.messages
        if argument:
            try:
                position = int(argument)
            except ValueError:
                return None
            if not 1 <= position <= len(messages):
                return None
            message = messages[position - 1]
            return message if message.is_model and not message.pending else None

        for message in reversed(messages):
            if message.is_model and not message.pending:
                return message
        return None

    async def play(self, argument: str) -> None:
        message = self._find_playable(argument)
        if message is None:
            self.echo(click.style("재생할 수 있는 답변이 없어요.", fg="red"))
            return

        self.echo(click.style("로딩 중...", dim=True))
        try:
            started = await self.manager.play(message.id)
        except PlaybackError:
            self.echo(click.style(PLAYBACK_NOTICE, fg="red"))
            return

        if not started:
            self.echo(click.style("이미 재생 중이에요.", fg="yellow"))

    async def quick_action(self, index: int) -> None:
        action, send_now = self.manager.quick_action(index)
        if action.is_template:
            self.template = action
            self.echo(click.style(f"{action.label}: 고칠 문장을 입력하세요.", fg="cyan"))
        elif send_now:
            await self.manager.submit(action.prompt)

    async def handle_line(self, line: str) -> bool:
        """Process one input line. Returns False when the user wants to quit."""
        stripped = line.strip()
        if not stripped:
            return True

        if stripped in ("/quit", "/exit"):
            return False
        if stripped == "/help":
            self.echo(HELP_TEXT)
            return True
        if stripped == "/status":
            self.echo(json.dumps(self.manager.get_status(), indent=2, ensure_ascii=False))
            return True
        if stripped == "/play" or stripped.startswith("/play "):
            await self.play(stripped[len("/play"):].strip())
            return True
        if stripped[:1] == "/" and stripped[1:].isdigit():
            index = int(stripped[1:]) - 1
            if 0 <= index < len(QUICK_ACTIONS):
                await self.quick_action(index)
            else:
                self.echo(click.style("없는 빠른 질문이에요.", fg="red"))
            return True

        text = stripped
        if self.template is not None:
            text = fill_template(self.template, stripped)
            self.template = None

        await self.manager.submit(text)
        return True

    async def run(self, read_line: Optional[Callable[[], str]] = None) -> None:
        """Read and handle lines until /quit or end of input."""
        read_line = read_line or self._prompt
        self.show_welcome()

        while True:
            try:
                line = read_line()
            except (EOFError, click.Abort):
                break
            if not await self.handle_line(line):
                break

    @staticmethod
    def _prompt() -> str:
        return click.prompt(INPUT_PROMPT, default="", show_default=False)
