"""Rendering of the node's health reports for the status command."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence

import termcolor

FORMAT_PRETTY = "pretty"
FORMAT_ONELINE = "oneline"
FORMAT_JSON = "json"
FORMAT_CSV = "csv"

SHOW_SUMMARY = "summary"
SHOW_IMPORTANT = "important"
SHOW_ALL = "all"

BALL = "⬤ "


class Status(str, Enum):
    OK = "ok"
    DOWN = "down"
    FAILING = "failing"
    LAGGING = "lagging"
    INFO = "info"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Report:
    """One named health report with its status and optional details."""

    name: str
    status: Status = Status.UNKNOWN
    details: str = ""


_BALL_STYLES: dict[Status, tuple[Optional[str], tuple[str, ...]]] = {
    Status.OK: ("green", ()),
    Status.DOWN: ("red", ()),
    Status.FAILING: ("yellow", ()),
    Status.LAGGING: ("yellow", ()),
    Status.INFO: ("blue", ()),
    Status.UNKNOWN: (None, ("dark",)),
}


def _paint(text: str, colored: bool, color: Optional[str] = None, attrs: Sequence[str] = ()) -> str:
    if not colored:
        return text
    return termcolor.colored(text, color, attrs=list(attrs) or None, force_color=True)


def _ball(status: Status, colored: bool) -> str:
    if not colored:
        return ""
    style = _BALL_STYLES.get(status)
    if style is None:
        return ""
    color, attrs = style
    return _paint(BALL, True, color, attrs)


def _status_text(text: str, colored: bool) -> str:
    return _paint(text, colored, attrs=("bold",))


def _name_text(text: str, colored: bool) -> str:
    return _paint(text, colored, "white", ("bold",))


def _details_text(status: Status, text: str, colored: bool) -> str:
    if status in (Status.OK, Status.INFO):
        return _paint(text, colored, attrs=("dark",))
    return _paint(text, colored, "yellow")


def sort_reports(reports: Iterable[Report]) -> list[Report]:
    """Return the reports ordered by name."""
    return sorted(reports, key=lambda report: report.name)


def filter_reports(reports: Iterable[Report], show: str) -> list[Report]:
    """Keep the reports that the ``show`` selection asks for; an unknown selection keeps none."""
    if show == SHOW_SUMMARY:
        return [r for r in reports if "summary" in r.name]
    if show == SHOW_IMPORTANT:
        return [r for r in reports if r.status != Status.INFO]
    if show == SHOW_ALL:
        return list(reports)
    return []


def format_pretty(reports: Iterable[Report], colored: bool = True) -> str:
    parts = []
    for report in reports:
        parts.append(_name_text(report.name, colored))
        parts.append("\n")
        parts.append(_ball(report.status, colored))
        parts.append(_status_text(report.status.value, colored))
        if report.details:
            parts.append(_status_text(": ", colored))
            parts.append(_details_text(report.status, report.details, colored))
        parts.append("\n\n")
    return "".join(parts)


def format_oneline(reports: Iterable[Report], colored: bool = True) -> str:
    parts = []
    for report in reports:
        parts.append(_ball(report.status, colored))
        parts.append(_status_text(report.status.value, colored))
        parts.append(" | ")
        parts.append(_name_text(report.name, colored))
        if report.details:
            parts.append(" | ")
            parts.append(_details_text(report.status, report.details, colored))
        parts.append("\n")
    return "".join(parts)


def _report_dict(report: Report) -> dict[str, str]:
    return {"name": report.name, "status": report.status.value, "details": report.details}


def format_json(reports: Iterable[Report]) -> str:
    """Encode the reports as indented JSON; no reports at all encode as ``null``."""
    items = [_report_dict(r) for r in reports]
    text = json.dumps(items or None, indent=2, ensure_ascii=False)
    text = text.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    return text + "\n"


def format_csv(reports: Iterable[Report]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for report in reports:
        writer.writerow([report.name, report.status.value, report.details])
    return buffer.getvalue()


def render_status(reports: Iterable[Report], fmt: str, show: str, colored: bool = True) -> str:
    """Sort, select and format the reports as the status command prints them."""
    selected = filter_reports(sort_reports(reports), show)
    if fmt == FORMAT_PRETTY:
        return format_pretty(selected, colored)
    if fmt == FORMAT_ONELINE:
        return format_oneline(selected, colored)
    if fmt == FORMAT_JSON:
        return format_json(selected)
    if fmt == FORMAT_CSV:
        return format_csv(selected)
    raise ValueError(f"unknown format: {fmt}")