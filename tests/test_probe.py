from pathlib import Path

from media_canonicalizer.probe import AUDIO_STREAM, VIDEO_STREAM, FFprobeProber
from media_canonicalizer.tools import ToolResult


class ScriptedRunner:
    def __init__(self, responses):
        self.responses = responses
        self.commands = []

    def run(self, command):
        self.commands.append(list(command))
        selector = command[command.index("-select_streams") + 1]
        return self.responses.get(selector, ToolResult(returncode=0, stdout=""))


def test_build_command_matches_ffprobe_contract():
    prober = FFprobeProber(ScriptedRunner({}), "ffprobe")
    assert prober.build_command(Path("clip.ogv"), VIDEO_STREAM) == [
        "ffprobe",
        "-v",
        "error",
        "-select_streams",
        "v:0",
        "-show_entries",
        "stream=codec_name",
        "-of",
        "default=nk=1:nw=1",
        "clip.ogv",
    ]


def test_codecs_are_trimmed_and_streams_detected():
    runner = ScriptedRunner(
        {
            VIDEO_STREAM: ToolResult(returncode=0, stdout="theora\n"),
            AUDIO_STREAM: ToolResult(returncode=0, stdout="  vorbis  \n"),
        }
    )
    prober = FFprobeProber(runner)

    assert prober.has_video_stream(Path("clip.ogv"))
    assert prober.video_codec(Path("clip.ogv")) == "theora"
    assert prober.has_audio_stream(Path("clip.ogv"))
    assert prober.audio_codec(Path("clip.ogv")) == "vorbis"


def test_failed_probe_reads_as_missing_stream():
    runner = ScriptedRunner({VIDEO_STREAM: ToolResult(returncode=1, stdout="h264", stderr="Invalid data")})
    prober = FFprobeProber(runner)

    assert not prober.has_video_stream(Path("broken.mp4"))
    assert prober.video_codec(Path("broken.mp4")) == ""


def test_probe_results_are_cached_per_stream():
    runner = ScriptedRunner({AUDIO_STREAM: ToolResult(returncode=0, stdout="mp3\n")})
    prober = FFprobeProber(runner)

    prober.has_audio_stream(Path("song.mp3"))
    prober.audio_codec(Path("song.mp3"))
    prober.has_video_stream(Path("song.mp3"))

    assert len(runner.commands) == 2
