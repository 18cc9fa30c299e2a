"""
debug_trace.py

Debug instrumentation for following guide creation, dragging and snapping.
Enable by setting DEBUG_TRACE = True below.
"""

import sys
from datetime import datetime

# Set to True to enable debug tracing
DEBUG_TRACE = False

# Set to True to trace every snap query (very verbose, fires on each pointer move)
TRACE_SNAP = False

# Log file (None for stderr only)
LOG_FILE = "pictoguide_debug.log"

_log_file = None


def _get_log_file():
    global _log_file
    if LOG_FILE and _log_file is None:
        try:
            _log_file = open(LOG_FILE, "w", encoding="utf-8")
        except OSError:
            pass
    return _log_file


def enable_tracing(enabled: bool = True, snap: bool = False, log_file=LOG_FILE):
    """Switch tracing on or off at runtime.

    Args:
        enabled: Turn tracing on.
        snap: Also trace per-move snap queries.
        log_file: Path of the trace file, or None for stderr only.
    """
    global DEBUG_TRACE, TRACE_SNAP, LOG_FILE
    close_log()
    DEBUG_TRACE = enabled
    TRACE_SNAP = snap
    LOG_FILE = log_file


def trace(msg: str, category: str = "INFO"):
    """Print a trace message with timestamp."""
    if not DEBUG_TRACE:
        return
    if category == "SNAP" and not TRACE_SNAP:
        return

    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    line = f"[{timestamp}] [{category}] {msg}"

    print(line, file=sys.stderr, flush=True)

    log_file = _get_log_file()
    if log_file:
        try:
            log_file.write(line + "\n")
            log_file.flush()
        except OSError:
            pass


def close_log():
    """Close log file."""
    global _log_file
    if _log_file:
        try:
            _log_file.close()
        except OSError:
            pass
        _log_file = None
