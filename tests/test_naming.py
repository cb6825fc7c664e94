"""Tests for track classification and naming."""

import pytest

from mkv_track_renamer.naming import (
    LANGUAGE_NAMES,
    NamingResult,
    UnknownLanguageError,
    UnknownTrackTypeError,
    classify,
    name_track,
    resolve_language,
)
from mkv_track_renamer.report import parse


def _track(**attributes) -> str:
    """Report text with a single track carrying the given attributes."""
    lines = ["+ Segment", "|+ Segment tracks", "| + A track"]
    labels = {"track_type": "Track type", "language": "Language", "codec_id": "Codec ID"}
    for key, value in attributes.items():
        lines.append(f"|  + {labels[key]}: {value}")
    return "\n".join(lines) + "\n"


def _name(**attributes) -> str:
    return classify(parse(_track(**attributes)), "Title").track_names[0]


class TestResolveLanguage:

    @pytest.mark.parametrize("code", ["", "eng", "und", "zxx"])
    def test_english_aliases(self, code):
        assert resolve_language(code) == "English"

    def test_missing_language_defaults_to_english(self):
        assert resolve_language(None) == "English"

    def test_every_table_code_resolves(self):
        for code, name in LANGUAGE_NAMES.items():
            assert resolve_language(code) == name

    def test_aliases(self):
        assert resolve_language("scc") == resolve_language("srp") == "Serbian"
        assert resolve_language("slo") == resolve_language("slv") == "Slovenian"
        assert resolve_language("rum") == "Rumanian"
        assert resolve_language("rom") == "Romanian"

    def test_case_sensitive(self):
        with pytest.raises(UnknownLanguageError):
            resolve_language("ENG")

    def test_unknown_code(self):
        with pytest.raises(UnknownLanguageError) as excinfo:
            resolve_language("xyz")
        assert excinfo.value.code == "xyz"

    def test_unknown_code_hint_from_iso_table(self):
        with pytest.raises(UnknownLanguageError) as excinfo:
            resolve_language("jpn")
        assert excinfo.value.iso_name == "Japanese"
        assert "Japanese" in str(excinfo.value)


class TestNameTrack:

    def test_audio_dts_suffix(self):
        assert _name(track_type="audio", language="spa", codec_id="A_DTS") == "Spanish DTS"

    def test_audio_other_codec(self):
        assert _name(track_type="audio", language="spa", codec_id="A_AC3") == "Spanish"

    def test_audio_without_language(self):
        assert _name(track_type="audio") == "English"

    def test_language_line_without_value_is_empty_code(self):
        report = _track(track_type="subtitles") + "|  + Language\n"
        track = parse(report).find("segment", "segment_tracks", "a_track")[0]
        assert track.first("language").value is None
        assert classify(parse(report), "Title").track_names == ["English"]

    def test_subtitles_ignore_dts_codec(self):
        assert _name(track_type="subtitles", language="ger", codec_id="A_DTS") == "German"

    def test_video_takes_title(self):
        assert _name(track_type="video", language="fre") == "Title"

    def test_unknown_track_type(self):
        with pytest.raises(UnknownTrackTypeError) as excinfo:
            _name(track_type="karaoke")
        assert excinfo.value.track_type == "karaoke"

    def test_missing_track_type(self):
        with pytest.raises(UnknownTrackTypeError):
            name_track(parse("+ A track\n").first("a_track"), "Title")

    def test_unknown_language_on_audio(self):
        with pytest.raises(UnknownLanguageError):
            _name(track_type="audio", language="xyz")


class TestClassify:

    def test_movie_scenario(self, movie_report):
        result = classify(parse(movie_report), "Movie")
        assert result == NamingResult(title="Movie", track_names=["Movie", "French"])

    def test_names_align_with_tracks(self, sample_report):
        result = classify(parse(sample_report), "Heat (1995)")
        assert result.title == "Heat (1995)"
        assert result.track_names == ["Heat (1995)", "Spanish DTS", "French", "English"]

    def test_no_tracks(self):
        result = classify(parse("+ Segment\n|+ Segment information\n"), "Empty")
        assert result.track_names == []

    def test_custom_path(self):
        root = parse("+ Tracks\n|+ Track\n| + Track type: subtitles\n| + Language: ita\n")
        result = classify(root, "X", tracks_path=("tracks", "track"))
        assert result.track_names == ["Italian"]


class TestEditArguments:

    def test_title_then_numbered_tracks(self):
        result = NamingResult(title="Movie", track_names=["Movie", "French"])
        assert result.edit_arguments() == [
            "--set", "title=Movie",
            "--edit", "track:1", "--set", "name=Movie",
            "--edit", "track:2", "--set", "name=French",
        ]

    def test_title_only(self):
        assert NamingResult(title="T").edit_arguments() == ["--set", "title=T"]
