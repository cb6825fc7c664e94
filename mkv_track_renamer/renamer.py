"""
MKV Track Renamer

Purpose:
Sets the title and track names of Matroska (MKV) files from their metadata.
The file is inspected with 'mkvinfo', the report is parsed into a tree, each
track is named from its type and language, and 'mkvpropedit' applies the
result in place.

Key Features:
- Title taken from the filename stem, or from TMDb when the filename carries
  a TMDb ID (e.g. "{tmdb-12345}") and --tmdb-title is given.
- Video tracks are named after the title, audio and subtitle tracks after
  their language ("French", "Spanish DTS").
- Confirmation prompt per file (skip with --yes), dry run mode.
- Single file, directory or recursive directory input.

Requirements:
- MKVToolNix ('mkvinfo' and 'mkvpropedit' in PATH)
- pycountry library (`pip install pycountry`)
- tmdbv3api library (`pip install tmdbv3api`), TMDb API key in TMDB_API_KEY
  for --tmdb-title
"""

import argparse
import logging
import os
import re
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional

from tmdbv3api import Movie as TMDbMovie
from tmdbv3api import TMDb

from .naming import NamingError, NamingResult, classify
from .report import ReportError, parse

# --- Constants ---
APP_NAME = "MKV Track Renamer"
# Parent of the report and naming module loggers
LOGGER_NAME = "mkv_track_renamer"
DEFAULT_LOG_DIR = Path("./logs")
MKVINFO_COMMAND = "mkvinfo"
MKVPROPEDIT_COMMAND = "mkvpropedit"

# Regex to find TMDb ID in filenames like {tmdb-12345}
TMDB_ID_PATTERN = re.compile(r"\s*\{tmdb-(\d+)\}")
# Environment variable name for the API key
TMDB_API_KEY_ENV_VAR = "TMDB_API_KEY"

CONFIRM_PROMPT = "Apply changes? [y/N] "


# --- Helper Functions ---
def setup_logging(log_level: str, log_dir: Path) -> logging.Logger:
    """
    Attaches console and file handlers to the package logger, so the parser
    and namer modules (children of it) log to the same file. Returns the logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"mkv_renamer_{time.strftime('%Y%m%d_%H%M%S')}.log"

    # Everything, including core DEBUG lines, goes to the file
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    logger.info(
        f"{APP_NAME} logging to {log_file} (console level {log_level.upper()})"
    )
    return logger


def title_from_stem(stem: str) -> str:
    """Filename stem with any '{tmdb-ID}' tag removed."""
    return TMDB_ID_PATTERN.sub("", stem).strip() or stem


# --- Main Processing Class ---
class MkvTrackRenamer:
    """Finds MKV files, derives their title and track names, and applies them."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.logger = setup_logging(args.log_level, args.log_dir)
        self.mkvinfo_path: Optional[Path] = None
        self.mkvpropedit_path: Optional[Path] = None
        self.tmdb_movie: Optional[TMDbMovie] = None
        self.stats = {
            "processed": 0,
            "renamed": 0,
            "skipped": 0,
            "errors": 0,
        }

    def _initialize_tools(self) -> bool:
        """Finds the MKVToolNix executables and initializes TMDb if requested."""
        for command, attr in (
            (MKVINFO_COMMAND, "mkvinfo_path"),
            (MKVPROPEDIT_COMMAND, "mkvpropedit_path"),
        ):
            path_str = shutil.which(command)
            if not path_str:
                self.logger.critical(f"'{command}' not found in PATH.")
                return False
            setattr(self, attr, Path(path_str))
            self.logger.info(f"Found {command} at: {path_str}")

        if self.args.tmdb_title:
            api_key = os.getenv(TMDB_API_KEY_ENV_VAR)
            if not api_key:
                self.logger.warning(
                    f"TMDb API key ({TMDB_API_KEY_ENV_VAR}) not set. "
                    "Titles will come from filenames."
                )
            else:
                tmdb = TMDb()
                tmdb.api_key = api_key
                self.tmdb_movie = TMDbMovie()
                self.logger.info("TMDb API initialized.")
        return True

    def _find_mkv_files(self, input_paths: List[Path]) -> List[Path]:
        """
        Expands files and directories into MKV files, in argument order.
        A file reached twice (named directly and via its directory) is kept once.
        """
        pattern = "**/*.mkv" if self.args.recursive else "*.mkv"
        found: List[Path] = []
        seen = set()
        for input_path in input_paths:
            if input_path.is_dir():
                candidates = sorted(input_path.glob(pattern))
                self.logger.debug(f"{input_path}: {len(candidates)} MKV files ({pattern})")
            elif input_path.is_file() and input_path.suffix.lower() == ".mkv":
                candidates = [input_path]
            elif input_path.is_file():
                self.logger.warning(f"Not an MKV file, ignoring: '{input_path}'")
                continue
            else:
                self.logger.error(f"Input path '{input_path}' not found.")
                continue
            for candidate in candidates:
                key = candidate.resolve()
                if key not in seen:
                    seen.add(key)
                    found.append(candidate)
        self.logger.info(f"Found {len(found)} MKV files.")
        return found

    def _get_tmdb_title(self, tmdb_id: int) -> Optional[str]:
        """Queries TMDb for the movie title, 'Title (Year)'. None on failure."""
        if not self.tmdb_movie:
            return None
        try:
            self.logger.debug(f"Querying TMDb for ID: {tmdb_id}")
            details = self.tmdb_movie.details(tmdb_id)
        except Exception as e:
            self.logger.error(
                f"TMDb query error ID {tmdb_id}: {e}",
                exc_info=self.args.log_level == "DEBUG",
            )
            return None

        title = getattr(details, "title", None)
        if not title:
            self.logger.warning(f"TMDb: No title for ID: {tmdb_id}")
            return None
        release_date = getattr(details, "release_date", None) or ""
        year = release_date[:4]
        return f"{title} ({year})" if year.isdigit() else title

    def _derive_title(self, file_path: Path) -> str:
        """Title for a file: TMDb title when available, else the cleaned stem."""
        tmdb_match = TMDB_ID_PATTERN.search(file_path.stem)
        if tmdb_match and self.tmdb_movie:
            tmdb_title = self._get_tmdb_title(int(tmdb_match.group(1)))
            if tmdb_title:
                self.logger.debug(f"Using TMDb title '{tmdb_title}'")
                return tmdb_title
            self.logger.warning(
                f"Failed to get TMDb title for '{file_path.name}', using filename."
            )
        return title_from_stem(file_path.stem)

    def _run_tool(self, cmd: List[str], file_path: Path, timeout: int) -> Optional[str]:
        """Runs an MKVToolNix command, returns stdout or None on failure."""
        tool = Path(cmd[0]).name
        self.logger.debug(f"Executing: {' '.join(map(str, cmd))}")
        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            self.logger.error(f"{tool} timeout '{file_path.name}'.")
            return None
        except FileNotFoundError:
            self.logger.critical(f"'{cmd[0]}' vanished!")
            sys.exit(1)

        if process.returncode != 0:
            # mkvinfo and mkvpropedit print their errors on stdout
            output = (process.stderr or process.stdout)[:1000]
            self.logger.error(
                f"{tool} failed '{file_path.name}' "
                f"Code:{process.returncode}. Output: {output}..."
            )
            return None
        return process.stdout

    def _build_mkvpropedit_command(
        self, file_path: Path, result: NamingResult
    ) -> List[str]:
        return [str(self.mkvpropedit_path), str(file_path)] + result.edit_arguments()

    def _confirm(self) -> bool:
        """Asks the user to confirm, unless --yes was given."""
        if self.args.yes:
            return True
        try:
            answer = input(CONFIRM_PROMPT)
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")

    def _process_single_file(self, file_path: Path) -> None:
        """Inspects, names and (unless dry run or declined) edits one file."""
        self.logger.info(f"--- Processing file: {file_path.name} ---")
        self.stats["processed"] += 1

        # === 1. Inspect ===
        report_text = self._run_tool(
            [str(self.mkvinfo_path), str(file_path)], file_path, timeout=300
        )
        if report_text is None:
            self.stats["errors"] += 1
            return

        # === 2. Parse & Name (errors propagate to the caller) ===
        title = self._derive_title(file_path)
        result = classify(parse(report_text), title)

        self.logger.info(f"Title: '{result.title}'")
        for number, name in enumerate(result.track_names, start=1):
            self.logger.info(f"  Track {number}: '{name}'")

        # === 3. Apply ===
        cmd = self._build_mkvpropedit_command(file_path, result)
        if self.args.dry_run:
            self.logger.info(f"[DRY RUN] Would execute: {' '.join(cmd)}")
            self.stats["skipped"] += 1
            return

        if not self._confirm():
            self.logger.info(f"Skipped by user: {file_path.name}")
            self.stats["skipped"] += 1
            return

        self.logger.info(f"Executing: {' '.join(cmd)}")
        if self._run_tool(cmd, file_path, timeout=600) is None:
            self.stats["errors"] += 1
            return
        self.logger.info(f"Renamed OK: {file_path.name}")
        self.stats["renamed"] += 1

    def run(self) -> int:
        """Main execution flow: initialize, find files, process, summarize."""
        start_time = time.time()
        self.logger.info(f"--- {APP_NAME} Started ---")

        if self.args.dry_run:
            self.logger.warning(" DRY RUN MODE ".center(60, "="))
            self.logger.warning(" No files will be modified ".center(60))
            self.logger.warning("=" * 60)

        if not self._initialize_tools():
            self.logger.critical("Tool init failed. Exiting.")
            return 1

        mkv_files = self._find_mkv_files(self.args.input_paths)
        if not mkv_files:
            self.logger.warning("No MKV files found.")
            return 0

        self.logger.info(f"Starting processing for {len(mkv_files)} MKV files...")
        for mkv_file in mkv_files:
            try:
                self._process_single_file(mkv_file)
            except (ReportError, NamingError) as e:
                self.logger.error(
                    f"Cannot name tracks of '{mkv_file.name}': {e}",
                    exc_info=self.args.log_level == "DEBUG",
                )
                self.stats["errors"] += 1
                if self.args.stop_on_error:
                    self.logger.critical("Stopping on first error (--stop-on-error).")
                    break

        duration = time.time() - start_time
        self.logger.info("--- Processing Summary ---")
        self.logger.info(f"Total files scanned:           {self.stats['processed']}")
        self.logger.info(f"Files renamed:                 {self.stats['renamed']}")
        self.logger.info(f"Files skipped:                 {self.stats['skipped']}")
        self.logger.info(f"Errors encountered:            {self.stats['errors']}")
        self.logger.info(f"Total execution time:          {duration:.2f} seconds")
        self.logger.info(f"--- {APP_NAME} Finished ---")
        return 1 if self.stats["errors"] > 0 else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{APP_NAME}: Set MKV title and track names.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    io_group = parser.add_argument_group("Input Options")
    behavior_group = parser.add_argument_group("Processing Behavior")
    log_group = parser.add_argument_group("Logging Options")

    io_group.add_argument(
        "input_paths", nargs="*", type=Path, default=[Path(".")], metavar="PATH",
        help="MKV files or directories."
    )
    io_group.add_argument(
        "-r", "--recursive", action="store_true",
        help="Scan directories recursively."
    )
    behavior_group.add_argument(
        "-y", "--yes", action="store_true",
        help="Apply changes without asking for confirmation."
    )
    behavior_group.add_argument(
        "-d", "--dry-run", action="store_true",
        help="Show the changes only, no file changes."
    )
    behavior_group.add_argument(
        "--stop-on-error", action="store_true",
        help="Stop the batch at the first file that cannot be named."
    )
    behavior_group.add_argument(
        "--tmdb-title", action="store_true",
        help=f"Take the title from TMDb for files with a '{{tmdb-ID}}' tag "
             f"(needs {TMDB_API_KEY_ENV_VAR})."
    )
    log_group.add_argument(
        "--log-dir", type=Path, default=DEFAULT_LOG_DIR, metavar="DIR",
        help="Directory for log files."
    )
    log_group.add_argument(
        "--log-level", default="INFO", metavar="LEVEL",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console logging level."
    )
    return parser


# --- Main Execution Guard ---
def main(argv: Optional[List[str]] = None) -> None:
    """Parses arguments, creates the renamer, and runs it."""
    args = build_parser().parse_args(argv)
    renamer = MkvTrackRenamer(args)
    sys.exit(renamer.run())

