"""Sets Matroska titles and track names from mkvinfo reports."""

from .naming import (
    NamingError,
    NamingResult,
    UnknownLanguageError,
    UnknownTrackTypeError,
    classify,
    resolve_language,
)
from .report import MalformedLineError, ReportError, ReportNode, parse, render

__version__ = "1.0.0"
