from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]

# (pid or None for idle, width, end time)
Segment = Tuple[Optional[str], int, int]


def _segments(slices: List[ScheduledSlice]) -> Iterator[Segment]:
    last_time = 0
    for sl in sorted(slices, key=lambda s: (s.start_time, s.end_time)):
        if sl.start_time > last_time:
            yield None, sl.start_time - last_time, sl.start_time
        yield sl.pid, max(1, sl.end_time - sl.start_time), sl.end_time
        last_time = sl.end_time


def _time_marks(segments: List[Segment]) -> str:
    return "0" + "".join(f"{end:>3}" for _, _, end in segments)


def render_gantt(slices: List[ScheduledSlice]) -> str:
    """
    Plain-text Gantt chart. Idle stretches are drawn with dots.
    """
    if not slices:
        return "(no execution)"

    segments = list(_segments(slices))
    line = "|"
    labels = ""
    for pid, width, _ in segments:
        if pid is None:
            line += "." * width
            labels += " " * width
        else:
            line += "=" * width
            labels += pid[:width].ljust(width)
    line += "|"

    return "\n".join(["Gantt Chart:", line, labels, _time_marks(segments)])


def build_rich_gantt(slices: List[ScheduledSlice]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not slices:
        return Panel("No execution", title="Gantt Chart"), ""

    pid_to_color: Dict[str, str] = {}
    timeline = Text()
    labels = Text()

    segments = list(_segments(slices))
    for pid, width, _ in segments:
        if pid is None:
            timeline.append(" " * width)
            labels.append(" " * width)
            continue
        color = pid_to_color.setdefault(pid, COLORS[len(pid_to_color) % len(COLORS)])
        timeline.append(" " * width, style=f"on {color}")
        labels.append(pid[:width].ljust(width), style="bold")

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    return Panel.fit(table, title="Gantt Chart"), _time_marks(segments)
