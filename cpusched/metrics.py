from __future__ import annotations

from typing import Callable, Dict, Iterable

from .errors import NoProcessesError
from .models import Process, ScheduleResult, SystemMetrics


def _average(processes: Iterable[Process], value: Callable[[Process], int]) -> float:
    total = 0
    count = 0
    for p in processes:
        total += value(p)
        count += 1

    if count == 0:
        raise NoProcessesError("no processes to average")
    return total / count


def average_response_time(processes: Iterable[Process]) -> float:
    """
    Mean of ``first_run - arrival`` over completed processes.
    """
    return _average(processes, lambda p: p.response_time)


def average_turnaround_time(processes: Iterable[Process]) -> float:
    """
    Mean of ``completion - arrival`` over completed processes.
    """
    return _average(processes, lambda p: p.turnaround_time)


def average_waiting_time(processes: Iterable[Process]) -> float:
    return _average(processes, lambda p: p.waiting_time)


def summarize_process_metrics(processes: Iterable[Process]) -> Dict[str, float]:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    processes = list(processes)
    return {
        "avg_waiting": average_waiting_time(processes),
        "avg_turnaround": average_turnaround_time(processes),
        "avg_response": average_response_time(processes),
    }


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute throughput and CPU utilization given completed processes and
    timeline slices.
    """
    if not result.processes:
        system = SystemMetrics(cpu_busy_time=0, makespan=0, throughput=0.0, cpu_utilization=0.0)
        result.system = system
        return system

    # Measured from the first arrival, where the simulated clock starts.
    makespan = max(p.completion for p in result.processes) - min(p.arrival for p in result.processes)
    cpu_busy_time = sum(slice_.end_time - slice_.start_time for slice_ in result.timeline)

    throughput = len(result.processes) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
    )
    result.system = system
    return system
