"""Audio output contexts, one per playback."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional
import structlog

from .decoder import SampleBuffer


logger = structlog.get_logger()


class AudioOutput(ABC):
    """
    A single-use output context for one sample buffer.

    Use as a context manager: the device resource is acquired on enter
    and always released on exit.
    """

    # Whether wait_finished() reports the real end of playback
    supports_completion: bool = False

    def __init__(self, buffer: SampleBuffer):
        self.buffer = buffer

    @abstractmethod
    def __enter__(self) -> "AudioOutput":
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None:
        pass

    @abstractmethod
    def start(self) -> None:
        """Begin playing the buffer immediately."""
        pass

    async def wait_finished(self) -> None:
        """Wait for the backend's end-of-playback event.

        Outputs that set ``supports_completion`` override this. The default
        belongs to outputs without a completion event, which are held open
        by the playback engine's cool-down timer and never awaited here.
        """
        raise NotImplementedError("This output does not report completion")


class SoundDeviceOutput(AudioOutput):
    """Plays a buffer through a dedicated sounddevice output stream."""

    supports_completion = True

    def __init__(self, buffer: SampleBuffer, blocksize: int = 1024):
        super().__init__(buffer)
        self.blocksize = blocksize
        self._frames = buffer.interleaved()
        self._position = 0
        self._finished = asyncio.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stream = None
        self._sd = None

    def __enter__(self) -> "SoundDeviceOutput":
        # Imported here: loading PortAudio can fail on machines without audio
        import sounddevice as sd

        self._sd = sd
        self._loop = asyncio.get_running_loop()
        self._stream = sd.OutputStream(
            samplerate=self.buffer.sample_rate,
            channels=self.buffer.channel_count,
            dtype="float32",
            blocksize=self.blocksize,
            callback=self._callback,
            finished_callback=self._on_finished,
        )
        logger.debug(
            "Opened output stream",
            sample_rate=self.buffer.sample_rate,
            channels=self.buffer.channel_count,
            duration_s=round(self.buffer.duration, 2),
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._stream is not None:
            try:
                self._stream.close(ignore_errors=True)
            finally:
                self._stream = None
                logger.debug("Closed output stream")

    def start(self) -> None:
        if self._stream is None:
            raise RuntimeError("Output stream not open")
        self._stream.start()

    def _callback(self, outdata, frames, time_info, status) -> None:
        """Audio-thread callback copying the next block."""
        if status:
            logger.debug("Output stream status", status=str(status))

        chunk = self._frames[self._position:self._position + frames]
        available = len(chunk)
        outdata[:available] = chunk
        self._position += available

        if available < frames:
            outdata[available:] = 0
            raise self._sd.CallbackStop

    def _on_finished(self) -> None:
        # Runs on the audio thread
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._finished.set)

    async def wait_finished(self) -> None:
        await self._finished.wait()


class SilentOutput(AudioOutput):
    """Discards audio but keeps real timing. For headless runs."""

    supports_completion = True

    def __init__(self, buffer: SampleBuffer):
        super().__init__(buffer)
        self._task: Optional[asyncio.Task] = None

    def __enter__(self) -> "SilentOutput":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def start(self) -> None:
        self._task = asyncio.get_running_loop().create_task(
            asyncio.sleep(self.buffer.duration)
        )

    async def wait_finished(self) -> None:
        if self._task is None:
            raise RuntimeError("Output not started")
        await self._task
