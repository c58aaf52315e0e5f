"""PCM decoding and audio output."""
