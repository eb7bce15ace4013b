"""
Logging helpers shared by the CLI, the API and the playlist pipeline.

Entrypoints call configure_logging() once; library modules only ever do
`logger = logging.getLogger(__name__)`.
"""
import logging
import os
import re
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

_logging_configured = False
_run_id: Optional[str] = None

# Marks handlers installed here so a forced reconfigure only replaces ours
_HANDLER_TAG = "_wm_handler"

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
_CONSOLE_FORMAT_RUN = "%(asctime)s | %(levelname)-5s | %(name)s | run_id=%(run_id)s | %(message)s"
_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-5s | %(name)s | %(funcName)s:%(lineno)d "
    "| run_id=%(run_id)s | %(message)s"
)

_NOISY_LOGGERS = ("urllib3", "requests", "httpx", "uvicorn.access")

_SECRET_KEYS = (
    "access_token", "accesstoken", "refresh_token", "refreshtoken",
    "authorization", "client_secret", "api_key", "token", "password",
)
_BEARER_RE = re.compile(r"(bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)
_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
_HOME_RE = re.compile(r"(/home/|/Users/)[^/\s]+")


class RunIdFilter(logging.Filter):
    """Stamp the current run_id (or "-") onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id or "-"
        return True


def set_run_id(run_id: Optional[str]) -> None:
    global _run_id
    _run_id = run_id


def get_run_id() -> Optional[str]:
    return _run_id


def _tagged(handler: logging.Handler, level: str, fmt: str, datefmt: str) -> logging.Handler:
    handler.setLevel(getattr(logging, level, logging.INFO))
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handler.addFilter(RunIdFilter())
    setattr(handler, _HANDLER_TAG, True)
    return handler


def configure_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    file_level: str = "DEBUG",
    force: bool = False,
    run_id: Optional[str] = None,
    console: bool = True,
    show_run_id: bool = False,
) -> None:
    """
    Install console (stdout) and optional file handlers on the root logger.

    Repeated calls are no-ops unless force=True. LOG_LEVEL and LOG_FILE
    in the environment take precedence over the arguments.

    Args:
        level: Console level name
        log_file: File to append to; its directory is created if needed
        file_level: Level for the file handler
        force: Replace handlers from an earlier call
        run_id: Initial run id for the record filter
        console: Add the stdout handler
        show_run_id: Show run ids on the console (always on at DEBUG)
    """
    global _logging_configured

    if run_id:
        set_run_id(run_id)
    if _logging_configured and not force:
        return

    level = os.getenv("LOG_LEVEL", level).upper()
    log_file = os.getenv("LOG_FILE") or log_file

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()

    if console:
        fmt = _CONSOLE_FORMAT_RUN if (show_run_id or level == "DEBUG") else _CONSOLE_FORMAT
        root.addHandler(_tagged(logging.StreamHandler(sys.stdout), level, fmt, "%H:%M:%S"))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        root.addHandler(_tagged(file_handler, file_level.upper(), _FILE_FORMAT, "%Y-%m-%d %H:%M:%S"))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True
    logging.getLogger(__name__).debug(
        f"Logging configured: console={level if console else 'off'} file={log_file or 'none'}"
    )


def _format_elapsed(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.0f}s"


@contextmanager
def stage_timer(stage_name: str, logger: Optional[logging.Logger] = None):
    """
    Log how long a block took, even when it raises.

        with stage_timer("Artist expansion", logger):
            artist_ids = expand_artist_pool(...)
    """
    log = logger or logging.getLogger(__name__)
    log.debug(f"{stage_name} starting")
    started = time.perf_counter()
    try:
        yield
    finally:
        log.info(f"{stage_name} completed in {_format_elapsed(time.perf_counter() - started)}")


def _key_pattern(key: str) -> re.Pattern:
    return re.compile(
        rf"([\"']?{re.escape(key)}[\"']?\s*[:=]\s*[\"']?)[^\"'\s,}}]+",
        re.IGNORECASE,
    )


_SECRET_KEY_RES = [_key_pattern(k) for k in _SECRET_KEYS]


def redact(
    value: Any,
    keys: Optional[List[str]] = None,
    patterns: Optional[List[str]] = None,
) -> str:
    """
    String form of `value` with credentials and personal data masked.

    Bearer tokens, token/secret fields, e-mail addresses and home
    directories are always masked; `keys` adds field names and `patterns`
    adds raw regexes.
    """
    if value is None:
        return "None"

    text = str(value)
    text = _BEARER_RE.sub(r"\1***REDACTED***", text)
    for key_re in _SECRET_KEY_RES + [_key_pattern(k) for k in (keys or [])]:
        text = key_re.sub(r"\1***REDACTED***", text)
    text = _EMAIL_RE.sub("***@***.***", text)
    text = _HOME_RE.sub(r"\1***", text)
    for pattern in patterns or []:
        text = re.sub(pattern, "***REDACTED***", text)
    return text


def format_count(n: int, singular: str, plural: Optional[str] = None) -> str:
    """'1 track', '12 tracks', '1,200 tracks'"""
    word = singular if n == 1 else (plural or f"{singular}s")
    return f"{n:,} {word}"


def truncate_list(items: Iterable[Any], max_items: int = 3, format_fn=str) -> str:
    """Comma-join the first `max_items` items, noting how many were left out."""
    items = list(items)
    if not items:
        return "(none)"
    shown = ", ".join(format_fn(item) for item in items[:max_items])
    hidden = len(items) - max_items
    return f"{shown} (+{hidden} more)" if hidden > 0 else shown


def add_logging_args(parser) -> None:
    """Add --log-level/--verbose/--quiet/--log-file to an argparse parser."""
    group = parser.add_argument_group("logging")
    group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Console log level (default: INFO)",
    )
    group.add_argument("--verbose", action="store_true", help="Same as --log-level DEBUG")
    group.add_argument("--quiet", action="store_true", help="Same as --log-level WARNING")
    group.add_argument("--log-file", type=str, metavar="PATH", help="Also write logs to PATH")


def resolve_log_level(args) -> str:
    """--verbose beats --quiet beats --log-level."""
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "quiet", False):
        return "WARNING"
    return getattr(args, "log_level", "INFO")


class RunSummary:
    """
    Metrics gathered over one generation run, logged as a block at the end.

        summary = RunSummary("Playlist generation", logger)
        summary.add("sections", 4)
        summary.increment("sections_skipped")
        summary.log()
    """

    def __init__(self, title: str, logger: Optional[logging.Logger] = None):
        self.title = title
        self.logger = logger or logging.getLogger(__name__)
        self.metrics: dict = {}
        self.started = time.perf_counter()

    def add(self, key: str, value: Union[int, float, str]) -> None:
        self.metrics[key] = value

    def increment(self, key: str, amount: int = 1) -> None:
        self.metrics[key] = self.metrics.get(key, 0) + amount

    def log(self, level: int = logging.INFO) -> None:
        rule = "-" * 50
        lines = [rule, f"{self.title.upper()} SUMMARY"]
        for key, value in self.metrics.items():
            shown = f"{value:.2f}" if isinstance(value, float) else value
            lines.append(f"  {key.replace('_', ' ').title()}: {shown}")
        lines.append(f"  Elapsed: {_format_elapsed(time.perf_counter() - self.started)}")
        lines.append(rule)
        for line in lines:
            self.logger.log(level, line)
