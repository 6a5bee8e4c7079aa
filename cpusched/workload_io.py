from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, List

from .errors import InvalidProcessError, WorkloadFormatError
from .models import Process


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.

    Each entry needs ``arrival`` and ``duration``; ``pid`` is optional.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise WorkloadFormatError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def sort_workload(processes: Iterable[Process]) -> List[Process]:
    """
    Order processes by arrival time, breaking ties by duration.
    """
    return sorted(processes, key=lambda p: (p.arrival, p.duration))


def sample_workload() -> List[Process]:
    return [
        Process(arrival=0, duration=6, pid="P1"),
        Process(arrival=1, duration=4, pid="P2"),
        Process(arrival=2, duration=3, pid="P3"),
    ]


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise WorkloadFormatError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(raw, list):
        raise WorkloadFormatError("JSON workload must be a list of process objects")

    processes: List[Process] = []
    for entry in raw:
        processes.append(_process_from_mapping(entry))

    return processes


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _as_int(value) -> int:
    # Whole numbers only: JSON true or 2.5 must not be coerced silently.
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"expected an integer, got {value!r}")
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, int):
        return value
    raise TypeError(f"expected an integer, got {value!r}")


def _process_from_mapping(mapping) -> Process:
    try:
        arrival = _as_int(mapping["arrival"])
        duration = _as_int(mapping["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise WorkloadFormatError(f"Invalid process entry: {mapping!r}") from exc

    pid_val = mapping.get("pid")
    pid = str(pid_val) if pid_val not in (None, "") else None

    try:
        return Process(arrival=arrival, duration=duration, pid=pid)
    except InvalidProcessError as exc:
        raise WorkloadFormatError(f"Invalid process entry: {mapping!r} ({exc})") from exc
