import logging
import sys
from typing import Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LEVEL_COLORS = {
    "TRACE": Fore.LIGHTBLACK_EX,
    "DEBUG": Fore.LIGHTCYAN_EX,
    "INFO": Fore.LIGHTBLUE_EX,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Fore.MAGENTA,
}


def trace(logger: logging.Logger, msg: str, *args):
    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, msg, *args)


class ColorFormatter(logging.Formatter):
    """Paints the level name of console records, leaves the message alone."""

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt or "%(levelname)s %(message)s")
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)
        # Work on a copy, other handlers may share the record
        record = logging.makeLogRecord(record.__dict__)
        color = LEVEL_COLORS.get(record.levelname, Fore.WHITE)
        record.levelname = f"{color}{record.levelname:<8}{Style.RESET_ALL}"
        return super().format(record)


def setup_logging(
    level: int = logging.INFO,
    use_colors: Optional[bool] = None,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    stream = stream or sys.stderr
    if use_colors is None:
        use_colors = hasattr(stream, "isatty") and stream.isatty()
    if use_colors:
        just_fix_windows_console()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColorFormatter(use_colors=use_colors))
    root = logging.getLogger("xmakegen")
    # Replace handlers left over from a previous invocation in the same process
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(level)
    return handler
