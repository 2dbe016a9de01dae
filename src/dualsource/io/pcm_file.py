from __future__ import annotations

from pathlib import Path

import numpy as np
import soundfile as sf

from dualsource.audio_contract import PCM_CHANNEL_COUNT, InvalidInputError


def read_pcm16(path: Path) -> tuple[np.ndarray, int]:
    audio, sample_rate = sf.read(path, dtype="int16", always_2d=True)
    if audio.shape[1] != PCM_CHANNEL_COUNT:
        raise InvalidInputError(
            "unsupported_channels",
            f"'{Path(path).name}' has {audio.shape[1]} channels; only mono PCM is supported.",
        )
    return np.ascontiguousarray(audio[:, 0]), int(sample_rate)


def write_pcm16(path: Path, samples: np.ndarray, sample_rate: int) -> None:
    sf.write(path, np.asarray(samples, dtype=np.int16), samplerate=sample_rate, subtype="PCM_16")
