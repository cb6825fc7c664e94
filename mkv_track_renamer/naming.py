"""
Derives track names and a title from a parsed mkvinfo report.

Audio and subtitle tracks are named after their language, audio tracks get a
"DTS" suffix when the codec is DTS, and video tracks take the title.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import pycountry

from .report import ReportNode

logger = logging.getLogger(__name__)

# --- Constants ---
# Path from the report root to the list of track entries
TRACKS_PATH = ("segment", "segment_tracks", "a_track")

TYPE_VIDEO = "video"
TYPE_AUDIO = "audio"
TYPE_SUBTITLES = "subtitles"

HIGH_BITRATE_AUDIO_CODEC = "A_DTS"
HIGH_BITRATE_AUDIO_SUFFIX = "DTS"

DEFAULT_LANGUAGE = "English"

# Matroska language codes (ISO 639-2/B) -> display names
LANGUAGE_NAMES = {
    "": "English",
    "eng": "English",
    "und": "English",
    "zxx": "English",
    "spa": "Spanish",
    "swe": "Swedish",
    "dut": "Dutch",
    "fre": "French",
    "ger": "German",
    "fin": "Finnish",
    "dan": "Danish",
    "nor": "Norwegian",
    "tur": "Turkish",
    "ara": "Arabic",
    "bul": "Bulgaric",
    "chi": "Chinese",
    "cze": "Czech",
    "gre": "Greek",
    "hrv": "Croatia",
    "hun": "Hungaric",
    "ind": "Indian",
    "rum": "Rumanian",
    "rom": "Romanian",
    "slv": "Slovenian",
    "slo": "Slovenian",
    "por": "Portugese",
    "ita": "Italian",
    "rus": "Russian",
    "mac": "Macedonian",
    "pol": "Polish",
    "scc": "Serbian",
    "srp": "Serbian",
    "vie": "Vietnamese",
    "est": "Estonian",
    "heb": "Hebrew",
    "mlt": "Maltese",
    "kor": "Korean",
    "tha": "Thai",
    "ice": "Icelandic",
    "scr": "Moldavian",
    "lit": "Lithuanian",
    "lav": "Latvian",
    "ukr": "Ukrainian",
}


class NamingError(Exception):
    """Base class for errors raised while naming tracks."""


class UnknownTrackTypeError(NamingError):
    """Raised for a track whose type is not video, audio or subtitles."""

    def __init__(self, track_type: Optional[str]):
        self.track_type = track_type
        super().__init__(f"Unknown track type: {track_type!r}")


class UnknownLanguageError(NamingError):
    """Raised for a language code missing from LANGUAGE_NAMES."""

    def __init__(self, code: str):
        self.code = code
        self.iso_name = _iso_language_name(code)
        hint = f" (ISO 639: {self.iso_name})" if self.iso_name else ""
        super().__init__(f"Unknown language code: {code!r}{hint}")


def _iso_language_name(code: str) -> Optional[str]:
    """Looks up the ISO 639 name of a 3-letter code, for error messages only."""
    if len(code) != 3:
        return None
    lang_obj = pycountry.languages.get(alpha_3=code.lower()) or pycountry.languages.get(
        bibliographic=code.lower()
    )
    return lang_obj.name if lang_obj else None


@dataclass
class NamingResult:
    """Title plus one name per track, in report order."""

    title: str
    track_names: List[str] = field(default_factory=list)

    def edit_arguments(self) -> List[str]:
        """mkvpropedit arguments applying the title and track names."""
        args = ["--set", f"title={self.title}"]
        for number, name in enumerate(self.track_names, start=1):
            args += ["--edit", f"track:{number}", "--set", f"name={name}"]
        return args


def resolve_language(code: Optional[str]) -> str:
    """Maps a track language code to its display name. None means no language line."""
    if code is None:
        return DEFAULT_LANGUAGE
    try:
        return LANGUAGE_NAMES[code]
    except KeyError:
        raise UnknownLanguageError(code) from None


def _language_code(track: ReportNode) -> Optional[str]:
    """
    Language code of a track. None only when the track has no Language line;
    a Language line without a value is the empty code.
    """
    node = track.first("language")
    if node is None:
        return None
    return node.value if node.value is not None else ""


def name_track(track: ReportNode, title: str) -> str:
    """Name for a single track entry."""
    track_type = track.value_of("track_type")

    if track_type == TYPE_SUBTITLES:
        return resolve_language(_language_code(track))

    if track_type == TYPE_AUDIO:
        name = resolve_language(_language_code(track))
        if track.value_of("codec_id") == HIGH_BITRATE_AUDIO_CODEC:
            name = f"{name} {HIGH_BITRATE_AUDIO_SUFFIX}"
        return name

    if track_type == TYPE_VIDEO:
        return title

    raise UnknownTrackTypeError(track_type)


def classify(
    root: ReportNode, title: str, tracks_path: Sequence[str] = TRACKS_PATH
) -> NamingResult:
    """Names every track found under ``tracks_path``, in document order."""
    tracks = root.find(*tracks_path)
    if not tracks:
        logger.debug(f"No tracks found at {'/'.join(tracks_path)}")

    names = [name_track(track, title) for track in tracks]
    for number, (track, name) in enumerate(zip(tracks, names), start=1):
        logger.debug(f"Track {number} ({track.value_of('track_type')}): '{name}'")
    return NamingResult(title=title, track_names=names)
