"""Decoding of signed 16-bit little-endian PCM into float samples."""

import base64
import binascii
from dataclasses import dataclass

import numpy as np


PCM16_SCALE = 32768.0


@dataclass(frozen=True)
class SampleBuffer:
    """Decoded audio, one float32 row per channel, values in [-1.0, 1.0)."""

    samples: np.ndarray  # shape (channels, frames)
    sample_rate: int

    @property
    def channel_count(self) -> int:
        return self.samples.shape[0]

    @property
    def frame_count(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return self.frame_count / self.sample_rate

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]

    def interleaved(self) -> np.ndarray:
        """Frames-by-channels layout expected by output streams."""
        return np.ascontiguousarray(self.samples.T)


def decode(data: bytes, sample_rate: int, channel_count: int) -> SampleBuffer:
    """
    Split interleaved int16 PCM into per-channel float samples.

    Samples that do not fill a whole frame at the end are dropped, as is a
    dangling odd byte.

    Args:
        data: Raw PCM bytes, little-endian, interleaved by channel
        sample_rate: Frames per second
        channel_count: Number of interleaved channels

    Returns:
        SampleBuffer with samples[channel][frame] = int16 / 32768.0
    """
    if channel_count < 1:
        raise ValueError(f"channel_count must be positive, got {channel_count}")
    if sample_rate < 1:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")

    frame_bytes = 2 * channel_count
    usable = len(data) - len(data) % frame_bytes
    if usable == 0:
        return SampleBuffer(
            samples=np.zeros((channel_count, 0), dtype=np.float32),
            sample_rate=sample_rate,
        )

    pcm = np.frombuffer(data, dtype="<i2", count=usable // 2)
    frames = pcm.reshape(-1, channel_count)
    samples = frames.T.astype(np.float32) / np.float32(PCM16_SCALE)

    return SampleBuffer(samples=np.ascontiguousarray(samples), sample_rate=sample_rate)


def decode_base64(payload: str, sample_rate: int, channel_count: int) -> SampleBuffer:
    """Decode a base64 PCM payload. Raises ValueError on malformed base64."""
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 audio payload: {e}") from e
    return decode(data, sample_rate, channel_count)
