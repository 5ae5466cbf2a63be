"""PCM sample conversion and WAV container encoding.

Raw capture bytes are little-endian signed 16-bit mono PCM. They are
normalized to float amplitudes in [-1.0, 1.0] (negative samples over 32768,
non-negative over 32767) and re-quantized with the same divisors when the
container is written, so every 16-bit value survives the trip unchanged.
"""

from __future__ import annotations

import io
import logging
import wave
from typing import Optional, Tuple

import numpy as np

from models import DEFAULT_AUDIO_CONFIG, AudioConfig

logger = logging.getLogger(__name__)

NEGATIVE_SCALE = 32768.0
POSITIVE_SCALE = 32767.0


def pcm16_to_samples(pcm: bytes) -> np.ndarray:
    """Convert raw PCM bytes to normalized float32 amplitudes.

    A trailing odd byte is a partial sample; it is dropped with a warning.
    """
    usable = len(pcm) - (len(pcm) % 2)
    if usable != len(pcm):
        logger.warning(f"Dropping {len(pcm) - usable} trailing byte(s) of a partial sample")
    ints = np.frombuffer(pcm[:usable], dtype="<i2")
    samples = np.where(ints < 0, ints / NEGATIVE_SCALE, ints / POSITIVE_SCALE)
    return samples.astype(np.float32)


def samples_to_pcm16(samples: np.ndarray) -> np.ndarray:
    values = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(values < 0, values * NEGATIVE_SCALE, values * POSITIVE_SCALE)
    return np.rint(scaled).astype("<i2")


def encode_wav(pcm: bytes, config: AudioConfig = DEFAULT_AUDIO_CONFIG) -> Optional[bytes]:
    """Encode raw PCM into a WAV container.

    Returns None when there is no sample data, so callers can skip writing
    an empty file.
    """
    if not pcm:
        return None
    samples = pcm16_to_samples(pcm)
    if samples.size == 0:
        return None

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(config.channels)
        wf.setsampwidth(config.sample_width)
        wf.setframerate(config.sample_rate)
        wf.writeframes(samples_to_pcm16(samples).tobytes())
    return buf.getvalue()


def decode_wav(data: bytes) -> Tuple[np.ndarray, AudioConfig]:
    """Read a 16-bit WAV container back into integer samples."""
    with wave.open(io.BytesIO(data), "rb") as wf:
        config = AudioConfig(
            sample_rate=wf.getframerate(),
            channels=wf.getnchannels(),
            bits=wf.getsampwidth() * 8,
        )
        frames = wf.readframes(wf.getnframes())
    return np.frombuffer(frames, dtype="<i2").copy(), config
