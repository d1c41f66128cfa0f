"""
Build logging for PLGX archives.

Everything goes to the console; init_logging() can add a build log file
that mirrors it. Warnings and errors are remembered so the build can
print a summary and decide whether the archive is usable.

Usage:
    from plgxbuild.utils import log, logWarning, logError, logDebug, init_logging, print_summary

    init_logging(Path("plgx_build.log"), verbose=False)

    log("PLGX archive manifest for 'SamplePlugin':")   # manifest, build steps
    logWarning("Unrecognized target framework")        # archive may not load everywhere
    logError("AssemblyName not specified.")            # archive must not be used
    logDebug("  Resources/Strings.resx")               # one line per streamed item

    print_summary()
"""

import sys
import atexit
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO, Tuple

RULE = "=" * 70

# ANSI escape sequences
ANSI_RESET = '\033[0m'
ANSI_BOLD = '\033[1m'
ANSI_RED = '\033[91m'
ANSI_GREEN = '\033[92m'
ANSI_YELLOW = '\033[93m'


@dataclass
class _BuildLog:
    file: Optional[TextIO] = None
    path: Optional[Path] = None
    ready: bool = False
    verbose: bool = False
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


_state = _BuildLog()


def _stamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def init_logging(log_path: Optional[Path] = None, verbose: bool = False):
    """
    Set up build logging. Safe to call more than once; only the first
    call after close_logging() opens a file.

    Args:
        log_path: Build log to write. None keeps output on the console.
        verbose: Echo debug messages to the console as well.
    """
    _state.verbose = verbose
    if _state.ready:
        return

    _state.ready = True
    reset_counts()

    if log_path is None:
        return

    _state.path = Path(log_path)
    _state.path.parent.mkdir(parents=True, exist_ok=True)
    try:
        _state.file = open(_state.path, 'w', encoding='utf-8')
    except OSError as e:
        print(f"Warning: build log {_state.path} unavailable ({e})", file=sys.stderr)
        return

    _to_file(f"PLGX build started: {_stamp()}\n{RULE}\n")
    atexit.register(close_logging)


def close_logging():
    """Finish and close the build log. Logging re-initializes on next use."""
    if _state.file is not None:
        _to_file(f"\n{RULE}\nPLGX build finished: {_stamp()}")
        try:
            _state.file.close()
        except OSError:
            pass
        _state.file = None

    _state.path = None
    _state.ready = False


def get_counts() -> Tuple[int, int]:
    """(errors, warnings) logged since the last reset."""
    return len(_state.errors), len(_state.warnings)


def reset_counts():
    _state.warnings = []
    _state.errors = []


def _to_file(msg: str, end: str = "\n"):
    if _state.file is None:
        return
    try:
        _state.file.write(msg + end)
        _state.file.flush()
    except OSError:
        pass


def _emit(text: str, end: str, colour: str = "", stream: Optional[TextIO] = None, console: bool = True):
    if not _state.ready:
        init_logging()

    if console:
        shown = f"{colour}{text}{ANSI_RESET}" if colour else text
        print(shown, end=end, file=stream or sys.stdout)
    _to_file(text, end)


def log(msg: str = "", end: str = "\n"):
    """Plain progress output: the archive manifest and build steps."""
    _emit(msg, end)


def logWarning(msg: str, end: str = "\n"):
    """
    Something the build tolerated. The archive is written but may not
    load on every host. Yellow on the console; counted for the summary.
    """
    _emit(f"Warning: {msg}", end, colour=ANSI_YELLOW)
    _state.warnings.append(msg)


def logError(msg: str, end: str = "\n"):
    """
    Something that makes the archive unusable. Red, on stderr; counted
    for the summary and checked by the builder.
    """
    _emit(f"ERROR: {msg}", end, colour=ANSI_RED, stream=sys.stderr)
    _state.errors.append(msg)


def logDebug(msg: str, end: str = "\n"):
    """Per-item detail. Always in the log file; on the console with --verbose."""
    _emit(f"[DEBUG] {msg}", end, console=_state.verbose)


def _summarize(title: str, messages: List[str], colour: str):
    if not messages:
        return
    print(f"\n{colour}{ANSI_BOLD}{title} ({len(messages)}):{ANSI_RESET}")
    _to_file(f"\n{title} ({len(messages)}):")
    for message in messages:
        print(f"  {colour}- {message}{ANSI_RESET}")
        _to_file(f"  - {message}")


def _tally(count: int, noun: str, colour: str) -> str:
    if count:
        return f"{colour}{ANSI_BOLD}{count} {noun}(s){ANSI_RESET}"
    return f"{ANSI_GREEN}0 {noun}s{ANSI_RESET}"


def print_summary():
    """List every warning and error of the build, then the totals."""
    log(f"\n{RULE}\nBUILD SUMMARY\n{RULE}")

    _summarize("Errors", _state.errors, ANSI_RED)
    _summarize("Warnings", _state.warnings, ANSI_YELLOW)

    errors, warnings = get_counts()
    print(f"\n{_tally(errors, 'Error', ANSI_RED)} | {_tally(warnings, 'Warning', ANSI_YELLOW)}")
    _to_file(f"\n{errors} Error(s) | {warnings} Warning(s)")
