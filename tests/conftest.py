"""Shared fixtures: sample mkvinfo reports."""

import pytest

SAMPLE_REPORT = """\
+ EBML head
|+ EBML version: 1
|+ Document type: matroska
+ Segment: size 734003200
|+ Seek head (subentries will be skipped)
|+ Segment information
| + Timestamp scale: 1000000
| + Title: Old Title
| + Duration: 01:42:13.120000000
|+ Segment tracks
| + A track
|  + Track number: 1 (track ID for mkvmerge & mkvextract: 0)
|  + Track type: video
|  + Codec ID: V_MPEG4/ISO/AVC
|  + Video track
|   + Pixel width: 1920
|   + Pixel height: 1080
| + A track
|  + Track number: 2 (track ID for mkvmerge & mkvextract: 1)
|  + Track type: audio
|  + Codec ID: A_DTS
|  + Language: spa
|  + Audio track
|   + Channels: 6
| + A track
|  + Track number: 3 (track ID for mkvmerge & mkvextract: 2)
|  + Track type: audio
|  + Codec ID: A_AC3
|  + Language: fre
| + A track
|  + Track number: 4 (track ID for mkvmerge & mkvextract: 3)
|  + Track type: subtitles
|  + Codec ID: S_TEXT/UTF8
|+ Cluster
"""

MOVIE_REPORT = """\
+ Segment: size 1000
|+ Segment tracks
| + A track
|  + Track type: video
| + A track
|  + Track type: audio
|  + Language: fre
"""


@pytest.fixture
def sample_report() -> str:
    return SAMPLE_REPORT


@pytest.fixture
def movie_report() -> str:
    return MOVIE_REPORT
