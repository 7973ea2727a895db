from pathlib import Path

import pytest
from conftest import media_bytes

from media_canonicalizer.config import AppConfig
from media_canonicalizer.converters import get_converter
from media_canonicalizer.models import OutcomeStatus, RunState
from media_canonicalizer.planner import Plan, PlanEntry, build_plan
from media_canonicalizer.scanner import MediaFile, MediaKind


@pytest.fixture
def converters(prober, runner):
    config = AppConfig()
    return {
        kind: get_converter(kind, config=config, runner=runner, prober=prober, binary="tool")
        for kind in (MediaKind.IMAGE, MediaKind.AUDIO, MediaKind.VIDEO)
    }


def _file(tmp_path: Path, name: str, kind: MediaKind, payload: bytes = b"") -> MediaFile:
    path = tmp_path / name
    path.write_bytes(payload)
    return MediaFile.from_path(path, kind)


def test_image_canonicality_is_extension_only(tmp_path, converters):
    state = RunState()
    files = [
        _file(tmp_path, "done.png", MediaKind.IMAGE),
        _file(tmp_path, "photo.jpeg", MediaKind.IMAGE),
    ]

    plan = build_plan(files, converters, state)

    assert [(e.source.path.name, e.target.name) for e in plan] == [("photo.jpeg", "photo.png")]
    assert state.needs_conversion == {tmp_path / "photo.jpeg"}
    assert state.outcomes[0].status is OutcomeStatus.ALREADY_CANONICAL


@pytest.mark.parametrize(
    "name, payload, expected_target",
    [
        ("a.ogg", media_bytes(audio="vorbis"), None),
        ("b.ogg", media_bytes(audio="opus"), "b.ogg"),
        ("c.mp3", media_bytes(audio="mp3"), "c.ogg"),
        ("d.oga", media_bytes(audio="vorbis"), "d.ogg"),
    ],
)
def test_audio_canonicality_and_targets(tmp_path, converters, name, payload, expected_target):
    plan = build_plan([_file(tmp_path, name, MediaKind.AUDIO, payload)], converters, RunState())

    targets = [entry.target.name for entry in plan]
    assert targets == ([expected_target] if expected_target else [])


def test_audio_in_place_target_equals_source(tmp_path, converters):
    media = _file(tmp_path, "b.ogg", MediaKind.AUDIO, media_bytes(audio="flac"))

    plan = build_plan([media], converters, RunState())

    assert plan.entries[0].target == media.path
    assert plan.entries[0].in_place


@pytest.mark.parametrize(
    "name, payload, expected_target",
    [
        ("a.ogv", media_bytes("theora", "vorbis"), None),
        ("silent.ogv", media_bytes("theora"), None),
        ("b.ogv", media_bytes("theora", "opus"), "b.ogv"),
        ("c.ogv", media_bytes("vp8", "vorbis"), "c.ogv"),
        ("d.mp4", media_bytes("h264", "aac"), "d.ogv"),
        ("e.webm", media_bytes("theora", "vorbis"), "e.ogv"),
    ],
)
def test_video_canonicality_and_targets(tmp_path, converters, name, payload, expected_target):
    plan = build_plan([_file(tmp_path, name, MediaKind.VIDEO, payload)], converters, RunState())

    targets = [entry.target.name for entry in plan]
    assert targets == ([expected_target] if expected_target else [])


def test_collisions_group_distinct_sources(tmp_path):
    a = MediaFile.from_path(tmp_path / "a.jpg", MediaKind.IMAGE)
    b = MediaFile.from_path(tmp_path / "b.jpg", MediaKind.IMAGE)
    c = MediaFile.from_path(tmp_path / "c.gif", MediaKind.IMAGE)
    target = tmp_path / "c.png"
    plan = Plan(
        entries=[
            PlanEntry(source=a, target=target),
            PlanEntry(source=b, target=target),
            PlanEntry(source=c, target=tmp_path / "other.png"),
        ]
    )

    assert plan.collisions() == {target: [tmp_path / "a.jpg", tmp_path / "b.jpg"]}


def test_same_source_twice_is_not_a_collision(tmp_path):
    a = MediaFile.from_path(tmp_path / "a.jpg", MediaKind.IMAGE)
    plan = Plan(entries=[PlanEntry(source=a, target=tmp_path / "a.png")] * 2)

    assert plan.collisions() == {}


def test_target_override_replaces_derived_target(tmp_path, converters):
    files = [_file(tmp_path, "a.jpg", MediaKind.IMAGE), _file(tmp_path, "b.jpg", MediaKind.IMAGE)]

    plan = build_plan(files, converters, RunState(), target_override=lambda media: tmp_path / "c.png")

    assert list(plan.collisions()) == [tmp_path / "c.png"]


def test_file_is_converted_before_its_path_is_overwritten(tmp_path):
    audio = MediaFile.from_path(tmp_path / "a.oga", MediaKind.AUDIO)
    video = MediaFile.from_path(tmp_path / "a.ogg", MediaKind.VIDEO)
    image = MediaFile.from_path(tmp_path / "b.jpg", MediaKind.IMAGE)
    plan = Plan(
        entries=[
            PlanEntry(source=image, target=tmp_path / "b.png"),
            PlanEntry(source=audio, target=tmp_path / "a.ogg"),
            PlanEntry(source=video, target=tmp_path / "a.ogv"),
        ]
    )

    assert plan.collisions() == {}
    assert [entry.source.path.name for entry in plan.ordered()] == ["b.jpg", "a.ogg", "a.oga"]


def test_outputs_overwriting_each_others_sources_collide(tmp_path):
    video = MediaFile.from_path(tmp_path / "a.ogg", MediaKind.VIDEO)
    audio = MediaFile.from_path(tmp_path / "a.ogv", MediaKind.AUDIO)
    plan = Plan(
        entries=[
            PlanEntry(source=audio, target=tmp_path / "a.ogg"),
            PlanEntry(source=video, target=tmp_path / "a.ogv"),
        ]
    )

    assert plan.collisions() == {
        tmp_path / "a.ogg": [tmp_path / "a.ogg", tmp_path / "a.ogv"],
        tmp_path / "a.ogv": [tmp_path / "a.ogg", tmp_path / "a.ogv"],
    }
