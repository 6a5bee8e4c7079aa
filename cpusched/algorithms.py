from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import replace
from typing import Callable, Deque, Dict, Iterable, List, Optional

from .errors import EmptyWorkloadError, InvalidProcessError, InvalidTimeSliceError, UnknownAlgorithmError
from .metrics import compute_system_metrics
from .models import NOT_STARTED, Process, ScheduleResult, SchedulerState
from .ready_queue import ReadyQueue

logger = logging.getLogger(__name__)


def _labels(workload: List[Process]) -> List[str]:
    """
    One unique pid per process. Unlabelled processes get ``P<position>``, or
    the next free ``P<n>`` past the workload size if that name is taken.
    """
    counts = Counter(p.pid for p in workload if p.pid is not None)
    duplicates = sorted(pid for pid, n in counts.items() if n > 1)
    if duplicates:
        raise InvalidProcessError(f"duplicate pid(s) in workload: {', '.join(duplicates)}")

    taken = set(counts)
    spare = len(workload)
    labels: List[str] = []
    for idx, p in enumerate(workload, start=1):
        pid = p.pid
        if pid is None:
            pid = f"P{idx}"
            while pid in taken:
                spare += 1
                pid = f"P{spare}"
            taken.add(pid)
        labels.append(pid)
    return labels


def _prepare(workload: Iterable[Process]) -> SchedulerState:
    """
    Copy the workload into fresh records sorted by (arrival, duration) and
    build the state for one scheduling call. Caller objects are never touched.
    """
    workload = list(workload)
    if not workload:
        raise EmptyWorkloadError("cannot schedule an empty workload")

    processes = [
        replace(p, first_run=NOT_STARTED, completion=0, pid=pid)
        for p, pid in zip(workload, _labels(workload))
    ]

    processes.sort(key=lambda p: (p.arrival, p.duration))
    return SchedulerState.for_workload(processes)


def _check_time_slice(time_slice: Optional[int]) -> int:
    if isinstance(time_slice, bool) or not isinstance(time_slice, int) or time_slice <= 0:
        raise InvalidTimeSliceError(f"Round Robin requires a positive integer time slice, got {time_slice!r}")
    return time_slice


def _result(name: str, state: SchedulerState, time_slice: Optional[int] = None) -> ScheduleResult:
    result = ScheduleResult(
        algorithm=name,
        time_slice=time_slice,
        processes=state.completed,
        timeline=state.timeline,
    )
    compute_system_metrics(result)
    logger.info(f"{name}: {len(state.completed)} processes finished at t={state.clock}")
    return result


def schedule_fifo(workload: Iterable[Process]) -> ScheduleResult:
    """
    First-In First-Out (non-preemptive).

    Processes run back to back in arrival order. If the next process has not
    arrived yet, the CPU idles until it does.
    """
    state = _prepare(workload)

    while state.pending:
        p = state.pending.popleft()
        if state.clock < p.arrival:
            state.clock = p.arrival

        state.start(p)
        logger.debug(f"FIFO: dispatch {p.pid} at t={state.clock} for {p.duration}")
        state.run(p, p.duration)
        state.finish(p)

    return _result("FIFO", state)


def schedule_sjf(workload: Iterable[Process]) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived, pick the one
    with the least work and run it to completion.
    """
    state = _prepare(workload)
    ready = ReadyQueue()

    while state.pending or ready:
        state.admit(ready.push)

        if not ready:
            # Nothing has arrived yet; jump time to the next arrival.
            state.idle_until_next_arrival()
            state.admit(ready.push)

        p = ready.pop()
        state.start(p)
        logger.debug(f"SJF: dispatch {p.pid} at t={state.clock} for {p.duration}")
        state.run(p, p.duration)
        state.finish(p)

    return _result("SJF", state)


def schedule_stcf(workload: Iterable[Process]) -> ScheduleResult:
    """
    Shortest Time-to-Completion First (preemptive SJF).

    The processor advances one time unit at a time. After every unit the
    newly arrived processes are admitted and the shortest remaining one is
    picked again, so a shorter arrival preempts the running process.
    """
    state = _prepare(workload)
    ready = ReadyQueue()
    state.admit(ready.push)

    while ready or state.pending:
        if not ready:
            state.idle_until_next_arrival()
            state.admit(ready.push)
            continue

        p = ready.pop()
        if not p.started:
            logger.debug(f"STCF: first run of {p.pid} at t={state.clock}")
        # first_run is stamped with the clock before the unit executes.
        state.start(p)
        state.run(p, 1, merge=True)

        if p.duration == 0:
            state.finish(p)
            logger.debug(f"STCF: {p.pid} completed at t={state.clock}")
        else:
            ready.push(p)

        state.admit(ready.push)

    return _result("STCF", state)


def schedule_rr(workload: Iterable[Process], time_slice: Optional[int] = None) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time slice.

    Processes that arrive during a slice join the tail of the ready queue
    ahead of the process that was just preempted.
    """
    time_slice = _check_time_slice(time_slice)
    state = _prepare(workload)

    ready: Deque[Process] = deque()
    state.admit(ready.append)

    while ready or state.pending:
        if not ready:
            state.idle_until_next_arrival()
            state.admit(ready.append)
            continue

        p = ready.popleft()
        state.start(p)

        run_time = min(time_slice, p.duration)
        logger.debug(f"RR: dispatch {p.pid} at t={state.clock} for {run_time}")
        state.run(p, run_time)

        # Arrivals during this slice queue up before the preempted process.
        state.admit(ready.append)

        if p.duration == 0:
            state.finish(p)
        else:
            ready.append(p)

    return _result("Round Robin", state, time_slice=time_slice)


def fifo(workload: Iterable[Process]) -> List[Process]:
    return schedule_fifo(workload).processes


def sjf(workload: Iterable[Process]) -> List[Process]:
    return schedule_sjf(workload).processes


def stcf(workload: Iterable[Process]) -> List[Process]:
    return schedule_stcf(workload).processes


def rr(workload: Iterable[Process], time_slice: int) -> List[Process]:
    return schedule_rr(workload, time_slice).processes


ALGORITHMS: Dict[str, Callable[..., ScheduleResult]] = {
    "fifo": schedule_fifo,
    "sjf": schedule_sjf,
    "stcf": schedule_stcf,
    "rr": schedule_rr,
}

ALIASES = {
    "fcfs": "fifo",
    "srtf": "stcf",
}


def resolve_algorithm(name: str) -> str:
    key = name.lower()
    key = ALIASES.get(key, key)
    if key not in ALGORITHMS:
        raise UnknownAlgorithmError(
            f"Unknown algorithm '{name}' (choose from {', '.join(ALGORITHMS)})"
        )
    return key


def run_algorithm(name: str, workload: Iterable[Process], time_slice: Optional[int] = None) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. The time slice is only used by
    round robin.
    """
    key = resolve_algorithm(name)
    func = ALGORITHMS[key]
    if key == "rr":
        return func(workload, time_slice=time_slice)
    return func(workload)
