"""Little-endian test signals: a float sine and a 16-bit PCM sine."""

from __future__ import annotations

import math
import struct

_PCM_AMPLITUDE = 10_000.0
_I16_MIN = -32768
_I16_MAX = 32767


def _f32(value: float) -> float:
    """Round a float to single precision."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


_PI_F32 = _f32(math.pi)


def _phase(index: int) -> float:
    # Single-precision phase, so the samples match a 32-bit float generator.
    return _f32(_f32(_f32(float(index)) * 50.0) / _PI_F32)


def _check_length(length: int) -> None:
    if length < 0:
        raise ValueError(f"sample count must not be negative, got {length}")


def _duplicate_channels(samples: list, stereo: bool) -> list:
    if not stereo:
        return samples
    return [sample for sample in samples for _ in range(2)]


def make_sine(float_len: int, stereo: bool) -> bytes:
    """Return ``float_len`` little-endian f32 sine samples.

    With ``stereo`` set, every sample is written twice (left and right).
    """
    _check_length(float_len)
    samples = [_f32(math.sin(_phase(i))) for i in range(float_len)]
    samples = _duplicate_channels(samples, stereo)
    return struct.pack(f"<{len(samples)}f", *samples)


def make_pcm_sine(i16_len: int, stereo: bool) -> bytes:
    """Return ``i16_len`` little-endian i16 sine samples of amplitude 10,000.

    With ``stereo`` set, every sample is written twice (left and right).
    """
    _check_length(i16_len)
    samples = []
    for i in range(i16_len):
        scaled = _f32(_f32(math.sin(_phase(i))) * _PCM_AMPLITUDE)
        samples.append(max(_I16_MIN, min(_I16_MAX, int(scaled))))
    samples = _duplicate_channels(samples, stereo)
    return struct.pack(f"<{len(samples)}h", *samples)