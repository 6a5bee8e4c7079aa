"""
CPU scheduling package.

Simulates a single processor running a known workload under FIFO, SJF,
STCF and Round Robin, and reports response and turnaround averages.
"""

from .algorithms import fifo, rr, run_algorithm, sjf, stcf
from .metrics import average_response_time, average_turnaround_time
from .models import Process

__all__ = [
    "Process",
    "fifo",
    "sjf",
    "stcf",
    "rr",
    "run_algorithm",
    "average_response_time",
    "average_turnaround_time",
]
