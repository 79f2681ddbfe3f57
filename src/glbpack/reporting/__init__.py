"""Progress and message reporting backends for glbpack."""

from .base import (
    Reporter,
    TaskStatus,
    format_stats,
    get_reporter,
    get_verbosity,
    section,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

REPORTER_CHOICES = ("plain", "rich", "json", "silent")

__all__ = [
    "Reporter",
    "TaskStatus",
    "format_stats",
    "get_reporter",
    "set_reporter",
    "section",
    "task",
    "set_verbosity",
    "get_verbosity",
    "PlainReporter",
    "JsonLinesReporter",
    "SilentReporter",
    "RichReporter",
    "REPORTER_CHOICES",
]
