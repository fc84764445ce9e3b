"""WAV encoding for remote providers and WAV loading for the CLI."""

from __future__ import annotations

import io
import wave
from pathlib import Path

import numpy as np
from numpy.typing import ArrayLike, NDArray

SAMPLE_RATE = 16000
CHANNELS = 1
SAMPLE_WIDTH = 2  # int16

INT16_MAX = 32767


def as_float_samples(samples: ArrayLike) -> NDArray[np.float32]:
    """Return samples as a flat float32 array."""
    return np.asarray(samples, dtype=np.float32).reshape(-1)


def float_to_wav(samples: ArrayLike) -> bytes:
    """Encode float PCM samples as a 16 kHz mono 16-bit WAV file in memory.

    Each sample is scaled by the int16 maximum; values outside [-1, 1] are
    clipped first so they cannot wrap around.

    Args:
        samples: Mono float samples in [-1, 1] at 16 kHz.

    Returns:
        Complete RIFF/WAV file bytes.
    """
    audio = np.clip(as_float_samples(samples), -1.0, 1.0)
    audio_int16 = (audio * INT16_MAX).astype(np.int16)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(audio_int16.tobytes())
    return buffer.getvalue()


def load_wav(path: Path) -> NDArray[np.float32]:
    """Read a 16-bit PCM WAV file as mono float samples at 16 kHz.

    Stereo input is averaged down to mono. Other sample rates are
    resampled with linear interpolation.

    Raises:
        ValueError: If the file is not 16-bit PCM.
    """
    with wave.open(str(path), "rb") as wf:
        if wf.getsampwidth() != SAMPLE_WIDTH:
            raise ValueError(
                f"Unsupported sample width: {wf.getsampwidth() * 8} bit "
                "(expected 16-bit PCM)"
            )
        channels = wf.getnchannels()
        rate = wf.getframerate()
        frames = wf.readframes(wf.getnframes())

    audio = np.frombuffer(frames, dtype=np.int16).astype(np.float32) / 32768.0
    if channels > 1:
        audio = audio.reshape(-1, channels).mean(axis=1)

    if rate != SAMPLE_RATE and len(audio) > 0:
        duration = len(audio) / rate
        target_len = int(duration * SAMPLE_RATE)
        source_times = np.linspace(0.0, duration, num=len(audio), endpoint=False)
        target_times = np.linspace(0.0, duration, num=target_len, endpoint=False)
        audio = np.interp(target_times, source_times, audio).astype(np.float32)

    return audio.astype(np.float32)
