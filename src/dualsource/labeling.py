"""Map an activity timeline onto transcript text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .activity import ActivitySegment, Source, timeline_total_ms


@dataclass(frozen=True, slots=True)
class TimestampedWord:
    """A transcribed word with its position in the recording."""

    text: str
    start_ms: int
    end_ms: int


@dataclass(frozen=True, slots=True)
class AttributionSummary:
    """Time attributed to each source across a timeline."""

    total_ms: int
    source_ms: dict[Source, int] = field(default_factory=dict)

    @property
    def active_ms(self) -> int:
        return self.total_ms - self.source_ms.get(Source.SILENCE, 0)

    @property
    def both_ratio(self) -> float:
        """Share of active time attributed to BOTH (the false-crosstalk rate when ground truth is single-source)."""

        active = self.active_ms
        if active <= 0:
            return 0.0
        return self.source_ms.get(Source.BOTH, 0) / active

    def as_dict(self) -> dict[str, object]:
        return {
            "total_ms": self.total_ms,
            "active_ms": self.active_ms,
            "both_ratio": round(self.both_ratio, 4),
            "source_ms": {source.value: self.source_ms.get(source, 0) for source in Source},
        }


def summarize_timeline(timeline: Sequence[ActivitySegment]) -> AttributionSummary:
    source_ms = {source: 0 for source in Source}
    for segment in timeline:
        source_ms[segment.source] += segment.duration_ms
    return AttributionSummary(total_ms=sum(source_ms.values()), source_ms=source_ms)


def source_at_time(timeline: Sequence[ActivitySegment], time_ms: int) -> Source:
    for segment in timeline:
        if segment.start_ms <= time_ms < segment.end_ms:
            return segment.source
    return Source.SILENCE


def label_transcript(transcript: str, timeline: Sequence[ActivitySegment]) -> str:
    """Spread words over non-silent segments in proportion to their duration."""

    if not timeline:
        return transcript
    total_ms = timeline_total_ms(timeline)
    if total_ms <= 0:
        return transcript

    words = transcript.split()
    if not words:
        return transcript

    words_per_ms = len(words) / total_ms
    lines: list[str] = []
    current_source: Source | None = None
    word_index = 0

    for segment in timeline:
        if word_index >= len(words):
            break
        if segment.source is Source.SILENCE:
            continue

        segment_words = max(1, round(segment.duration_ms * words_per_ms))
        chunk = words[word_index : word_index + segment_words]
        word_index += len(chunk)

        if segment.source != current_source:
            lines.append(f"{segment.source.label}: {' '.join(chunk)}")
            current_source = segment.source
        else:
            lines[-1] = f"{lines[-1]} {' '.join(chunk)}"

    leftover = words[word_index:]
    if leftover:
        if lines:
            lines[-1] = f"{lines[-1]} {' '.join(leftover)}"
        else:
            lines.append(" ".join(leftover))

    return "\n".join(lines).strip()


def label_timestamped_words(words: Sequence[TimestampedWord], timeline: Sequence[ActivitySegment]) -> str:
    """Label each word by the source active at its start time."""

    if not words:
        return ""
    if not timeline:
        return " ".join(word.text for word in words)

    lines: list[str] = []
    current_source: Source | None = None
    for word in words:
        source = source_at_time(timeline, word.start_ms)
        if source is not Source.SILENCE and source != current_source:
            lines.append(f"{source.label}: {word.text}")
            current_source = source
        elif lines:
            lines[-1] = f"{lines[-1]} {word.text}"
        else:
            lines.append(word.text)
    return "\n".join(lines)
