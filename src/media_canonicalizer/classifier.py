from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .logging import RunConsole
from .models import ConversionOutcome, OutcomeStatus, RunState
from .probe import MediaProber
from .scanner import MediaFile, MediaKind

UNCLASSIFIABLE_REASON = "Cannot classify media (no audio/video stream detected)"


@dataclass(slots=True)
class ClassifiedMedia:
    audio: list[MediaFile] = field(default_factory=list)
    video: list[MediaFile] = field(default_factory=list)


def classify(media: MediaFile, prober: MediaProber) -> MediaKind:
    """Decide the kind from stream content; a video stream wins over audio."""

    if prober.has_video_stream(media.path):
        return MediaKind.VIDEO
    if prober.has_audio_stream(media.path):
        return MediaKind.AUDIO
    return MediaKind.UNCLASSIFIED


def classify_media(
    candidates: Iterable[MediaFile],
    prober: MediaProber,
    state: RunState,
    console: RunConsole,
) -> ClassifiedMedia:
    classified = ClassifiedMedia()
    for candidate in candidates:
        kind = classify(candidate, prober)
        if kind is MediaKind.VIDEO:
            classified.video.append(candidate.with_kind(kind))
        elif kind is MediaKind.AUDIO:
            classified.audio.append(candidate.with_kind(kind))
        else:
            console.error(f"{UNCLASSIFIABLE_REASON}: {candidate.path}")
            state.record(
                ConversionOutcome(
                    source=candidate.path,
                    kind=MediaKind.UNCLASSIFIED,
                    status=OutcomeStatus.ERROR,
                    reason=UNCLASSIFIABLE_REASON,
                )
            )
    return classified


__all__ = ["ClassifiedMedia", "UNCLASSIFIABLE_REASON", "classify", "classify_media"]
