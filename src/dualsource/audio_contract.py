"""PCM contract shared by every entry point into the attribution core.

Invariants
----------
* Tracks are mono signed 16-bit PCM; byte buffers are little-endian.
* Full scale is ``PCM16_FULL_SCALE`` so that ``-32768`` maps to exactly -1.0.
* Invalid input is reported with :class:`InvalidInputError`, never by returning
  sentinel values.
"""

from __future__ import annotations

from typing import Any

import numpy as np

PCM16_FULL_SCALE = 32_768.0
PCM16_MIN = -32_768
PCM16_MAX = 32_767
PCM16_SAMPLE_WIDTH_BYTES = 2
PCM_CHANNEL_COUNT = 1


class InvalidInputError(ValueError):
    """Raised when a caller hands the core malformed samples or parameters."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


def coerce_samples(samples: Any, name: str = "samples") -> np.ndarray:
    """Return ``samples`` as a 1-D integer array without copying when possible."""

    array = np.asarray(samples)
    if array.ndim != 1:
        raise InvalidInputError("not_mono", f"{name} must be a 1-D mono buffer, got {array.ndim} dimensions.")
    if array.size == 0:
        raise InvalidInputError("empty_samples", f"{name} is empty.")
    if array.dtype.kind not in "iu":
        raise InvalidInputError("invalid_dtype", f"{name} must hold integer PCM samples, got {array.dtype}.")
    return array


def ensure_sample_rate(sample_rate: int) -> int:
    if sample_rate is None or int(sample_rate) <= 0:
        raise InvalidInputError("invalid_sample_rate", f"Sample rate must be positive, got {sample_rate}.")
    return int(sample_rate)


def pcm16_from_bytes(data: bytes) -> np.ndarray:
    """Decode little-endian signed 16-bit PCM bytes."""

    if len(data) % PCM16_SAMPLE_WIDTH_BYTES:
        raise InvalidInputError("odd_byte_count", f"PCM16 buffer has an odd byte count ({len(data)}).")
    return np.frombuffer(data, dtype="<i2").astype(np.int16, copy=False)


def pcm16_to_bytes(samples: np.ndarray) -> bytes:
    return np.asarray(samples, dtype="<i2").tobytes()
