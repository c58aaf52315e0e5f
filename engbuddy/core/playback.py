"""
Per-message text-to-speech playback.

Each model message gets its own PlaybackSession that cycles
idle -> loading -> playing -> idle. A session only accepts a new request
while idle.
"""

import asyncio
from enum import Enum
from typing import Callable, Dict, Optional
import structlog

from ..audio.decoder import SampleBuffer, decode_base64
from ..audio.output import AudioOutput, SoundDeviceOutput
from ..providers.speech.base import SpeechProvider
from ..state.conversation_log import Message


logger = structlog.get_logger()


PLAYBACK_ERROR_MESSAGE = "음성을 재생하는 중 오류가 발생했습니다."
PLAYBACK_NOTICE = "오디오 재생에 실패했습니다."

OutputFactory = Callable[[SampleBuffer], AudioOutput]


class PlaybackState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"


class PlaybackError(Exception):
    """Synthesis, decoding or output failed. The session is back to idle."""

    def __init__(self, user_message: str = PLAYBACK_ERROR_MESSAGE):
        super().__init__(user_message)
        self.user_message = user_message


class PlaybackSession:
    """Playback lifecycle for the text of one model message."""

    def __init__(self, engine: "PlaybackEngine", message_id: str, text: str):
        self._engine = engine
        self.message_id = message_id
        self.text = text
        self.state = PlaybackState.IDLE
        self.buffer: Optional[SampleBuffer] = None
        self.play_count = 0

    @property
    def is_idle(self) -> bool:
        return self.state is PlaybackState.IDLE

    def _set_state(self, state: PlaybackState) -> None:
        logger.debug(
            "Playback state changed",
            message_id=self.message_id,
            from_state=self.state.value,
            to_state=state.value,
        )
        self.state = state

    async def play(self) -> bool:
        """
        Synthesize and play this message's text.

        Returns False without doing anything unless the session is idle.
        Raises PlaybackError after resetting to idle if anything fails.
        """
        if not self.is_idle:
            logger.debug(
                "Playback request refused", message_id=self.message_id, state=self.state.value
            )
            return False

        self._set_state(PlaybackState.LOADING)
        try:
            speech = await self._engine.speech_provider.synthesize(self.text)
            self.buffer = decode_base64(
                speech.audio_base64, speech.sample_rate, speech.channels
            )

            with self._engine.output_factory(self.buffer) as output:
                output.start()
                self._set_state(PlaybackState.PLAYING)
                self.play_count += 1
                await self._engine.wait_until_done(output)

        except Exception as e:
            logger.error(
                "Playback failed",
                message_id=self.message_id,
                state=self.state.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PlaybackError() from e

        finally:
            self._set_state(PlaybackState.IDLE)

        return True


class PlaybackEngine:
    """
    Creates and owns one PlaybackSession per model message.

    Sessions share the speech provider and output settings but never
    their state. Every playback opens a fresh output context which is
    closed when the playback ends.
    """

    def __init__(
        self,
        speech_provider: SpeechProvider,
        output_factory: Optional[OutputFactory] = None,
        cooldown_seconds: float = 3.0,
        wait_for_completion: bool = True,
    ):
        self.speech_provider = speech_provider
        self.output_factory: OutputFactory = output_factory or SoundDeviceOutput
        self.cooldown_seconds = cooldown_seconds
        self.wait_for_completion = wait_for_completion
        self._sessions: Dict[str, PlaybackSession] = {}

    def session_for(self, message: Message) -> PlaybackSession:
        """Return the playback session of a finalized model message."""
        if not message.is_model:
            raise ValueError("Only model messages can be played")
        if message.pending:
            raise ValueError("Cannot play a message that is still pending")

        session = self._sessions.get(message.id)
        if session is None:
            session = PlaybackSession(self, message.id, message.text)
            self._sessions[message.id] = session
        return session

    def state_of(self, message_id: str) -> PlaybackState:
        session = self._sessions.get(message_id)
        return session.state if session else PlaybackState.IDLE

    async def play(self, message: Message) -> bool:
        return await self.session_for(message).play()

    async def wait_until_done(self, output: AudioOutput) -> None:
        """Hold the output open until playback has ended.

        Uses the backend's completion event when there is one. Otherwise
        waits the cool-down, stretched to the buffer length so the output
        is not closed mid-sentence.
        """
        duration = output.buffer.duration

        if self.wait_for_completion and output.supports_completion:
            try:
                await asyncio.wait_for(
                    output.wait_finished(), timeout=duration + self.cooldown_seconds
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "No completion event from output, releasing",
                    duration_s=round(duration, 2),
                )
            return

        await asyncio.sleep(max(self.cooldown_seconds, duration))

    def get_status(self) -> dict:
        states: Dict[str, int] = {}
        for session in self._sessions.values():
            states[session.state.value] = states.get(session.state.value, 0) + 1
        return {
            "sessions": len(self._sessions),
            "states": states,
            "cooldown_seconds": self.cooldown_seconds,
            "wait_for_completion": self.wait_for_completion,
        }
