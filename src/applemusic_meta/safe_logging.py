"""Log formatting for applemusic-meta.

Scraped text (artist bios, album notes) can run to several kilobytes and
ends up in debug messages and log arguments. The formatter here truncates
such values so a single record stays readable on a terminal.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_MAX_LENGTH = 200
ELLIPSIS = "…"


def truncate(value: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Shorten `value` to at most `max_length` characters, marking the cut.

    Args:
        value: Text to shorten
        max_length: Maximum length of the result, ellipsis included

    Returns:
        `value` unchanged if short enough, else its prefix plus an ellipsis
    """
    if len(value) <= max_length:
        return value
    return value[: max(0, max_length - len(ELLIPSIS))] + ELLIPSIS


class TruncatingFormatter(logging.Formatter):
    """Log formatter that truncates long messages and string arguments."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        max_length: int = DEFAULT_MAX_LENGTH,
    ):
        super().__init__(fmt, datefmt)
        self.max_length = max_length

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers still see the full record
        record = logging.makeLogRecord(record.__dict__)

        if record.args:
            record.args = self._truncate_args(record.args)
        record.msg = truncate(str(record.msg), self.max_length * 4)

        return super().format(record)

    def _truncate_args(self, args: tuple[Any, ...] | Mapping[str, Any]) -> Any:
        if isinstance(args, Mapping):
            return {key: self._truncate_value(value) for key, value in args.items()}
        return tuple(self._truncate_value(arg) for arg in args)

    def _truncate_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return truncate(value, self.max_length)
        return value


def configure_rich_logging(
    level: int = logging.WARNING,
    format_string: str = "%(message)s",
    show_time: bool = True,
    show_path: bool = False,
    max_length: int = DEFAULT_MAX_LENGTH,
    console: Console | None = None,
) -> Console:
    """Install a RichHandler on the root logger.

    Previously installed RichHandlers are removed so repeated CLI invocations
    in one process (tests) do not duplicate output.

    Args:
        level: Logging level
        format_string: Format for the message part; Rich renders time and level
        show_time: Show timestamps column
        show_path: Show source path column
        max_length: Truncation limit for string arguments
        console: Console to log to; a stderr console is created if omitted

    Returns:
        The console used for logging, to be shared with CLI output
    """
    console = console or Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(TruncatingFormatter(fmt=format_string, max_length=max_length))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing, RichHandler):
            root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    return console


## Tests


def test_truncate():
    assert truncate("short") == "short"
    result = truncate("x" * 500, 10)
    assert len(result) == 10
    assert result.endswith(ELLIPSIS)


def test_truncating_formatter_shortens_args():
    formatter = TruncatingFormatter(fmt="%(message)s", max_length=20)
    record = logging.LogRecord(
        name="test",
        level=logging.DEBUG,
        pathname="",
        lineno=0,
        msg="Bio: %s (%d)",
        args=("a" * 100, 7),
        exc_info=None,
    )

    formatted = formatter.format(record)
    assert formatted == f"Bio: {'a' * 19}{ELLIPSIS} (7)"
    # Original record untouched
    assert record.args == ("a" * 100, 7)
