from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional

from .errors import InvalidProcessError

logger = logging.getLogger(__name__)

NOT_STARTED = -1


@dataclass
class Process:
    """
    One unit of work.

    ``duration`` is the remaining CPU time: preemptive schedulers decrement it
    in place, so a completed process reads 0. The original value is kept in
    ``burst``.
    """

    arrival: int
    duration: int
    first_run: int = NOT_STARTED
    completion: int = 0
    pid: Optional[str] = None
    burst: int = field(init=False)

    def __post_init__(self) -> None:
        for name in ("arrival", "duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidProcessError(f"{name} must be an integer, got {value!r}")
        if self.arrival < 0:
            raise InvalidProcessError(f"arrival must be non-negative, got {self.arrival}")
        if self.duration <= 0:
            raise InvalidProcessError(f"duration must be positive, got {self.duration}")
        self.burst = self.duration

    @property
    def started(self) -> bool:
        return self.first_run != NOT_STARTED

    @property
    def response_time(self) -> int:
        return self.first_run - self.arrival

    @property
    def turnaround_time(self) -> int:
        return self.completion - self.arrival

    @property
    def waiting_time(self) -> int:
        return self.turnaround_time - self.burst


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: str
    start_time: int
    end_time: int


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float


@dataclass
class ScheduleResult:
    algorithm: str
    time_slice: Optional[int]
    processes: List[Process] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None


@dataclass
class SchedulerState:
    """
    Mutable state owned by a single scheduling call.

    ``pending`` holds processes that have not arrived yet, in arrival order.
    """

    clock: int
    pending: Deque[Process]
    completed: List[Process] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    last_run: Optional[Process] = field(default=None, repr=False, compare=False)

    @classmethod
    def for_workload(cls, processes: List[Process]) -> "SchedulerState":
        return cls(clock=processes[0].arrival, pending=deque(processes))

    def admit(self, push: Callable[[Process], None]) -> int:
        """
        Move every pending process with ``arrival <= clock`` into a ready
        structure via ``push``. Returns how many were admitted.
        """
        admitted = 0
        while self.pending and self.pending[0].arrival <= self.clock:
            push(self.pending.popleft())
            admitted += 1
        return admitted

    def idle_until_next_arrival(self) -> None:
        nxt = self.pending[0].arrival
        if nxt > self.clock:
            logger.debug(f"CPU idle from t={self.clock} to t={nxt}")
            self.clock = nxt

    def start(self, process: Process) -> None:
        if not process.started:
            process.first_run = self.clock

    def run(self, process: Process, units: int, merge: bool = False) -> None:
        """
        Execute ``process`` for ``units`` time units. With ``merge``, a slice
        that directly continues the previous slice of the same process object
        extends it instead of opening a new one.
        """
        start = self.clock
        self.clock += units
        process.duration -= units

        last = self.timeline[-1] if self.timeline else None
        if merge and self.last_run is process and last is not None and last.end_time == start:
            last.end_time = self.clock
        else:
            self.timeline.append(ScheduledSlice(pid=process.pid, start_time=start, end_time=self.clock))
        self.last_run = process

    def finish(self, process: Process) -> None:
        process.completion = self.clock
        self.completed.append(process)
