# utils.py

import re
from typing import Dict, List, Sequence

from config import IDLE_COLOR
from errors import ValidationError
from scheduler import Interval, Process


def get_color(index):
    """Return a stable color for the index-th process."""
    return f"hsl({(index * 80) % 360}, 70%, 60%)"


def assign_colors(intervals: Sequence[Interval]) -> Dict[str, str]:
    """Map each process name to a color, in order of first appearance."""
    colors = {}
    count = 0
    for iv in intervals:
        if iv.name in colors:
            continue
        if iv.is_idle:
            colors[iv.name] = IDLE_COLOR
        else:
            colors[iv.name] = get_color(count)
            count += 1
    return colors


def parse_reference_string(text: str) -> List[int]:
    """Parse page numbers separated by whitespace and/or commas."""
    tokens = [t for t in re.split(r"[\s,]+", text.strip()) if t]
    pages = []
    for t in tokens:
        try:
            pages.append(int(t))
        except ValueError:
            raise ValidationError(f"Invalid page number: {t!r}") from None
    if not pages:
        raise ValidationError("Reference string must contain at least one page")
    return pages


def parse_processes(text: str) -> List[Process]:
    """
    Parse one "name arrival burst [priority]" record per line.

    Blank lines are skipped. Raises ValidationError naming the offending line.
    """
    processes = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        parts = line.split()
        if not parts:
            continue
        if len(parts) not in (3, 4):
            raise ValidationError(
                f"Line {lineno}: expected 'name arrival burst [priority]', got {line.strip()!r}"
            )
        name, *numbers = parts
        try:
            values = [int(n) for n in numbers]
        except ValueError:
            raise ValidationError(f"Line {lineno}: arrival, burst and priority must be integers") from None
        try:
            processes.append(Process(name, *values))
        except ValidationError as e:
            raise ValidationError(f"Line {lineno}: {e}") from None
    if not processes:
        raise ValidationError("At least one process is required")
    return processes
