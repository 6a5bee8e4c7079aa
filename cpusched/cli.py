from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import ALGORITHMS, run_algorithm
from .gantt import build_rich_gantt, render_gantt
from .metrics import summarize_process_metrics
from .models import Process, ScheduleResult
from .workload_io import load_workload, sample_workload, sort_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpusched",
        description="Single-CPU scheduling simulator (FIFO, SJF, STCF, RR).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every dispatch decision.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm to use (fifo, sjf, stcf, rr).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    run_parser.add_argument(
        "--time-slice",
        "-q",
        type=int,
        default=None,
        help="Time slice for round robin (ignored by FIFO, SJF, STCF).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Print a plain-text Gantt chart instead of the colored one.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help="Algorithms to compare (default: fifo sjf stcf rr).",
    )
    compare_parser.add_argument(
        "--time-slice",
        "-q",
        type=int,
        default=2,
        help="Time slice used for RR when included (default: 2).",
    )

    demo_parser = subparsers.add_parser(
        "demo",
        help="Run every algorithm on the built-in three-process sample workload.",
    )
    demo_parser.add_argument(
        "--time-slice",
        "-q",
        type=int,
        default=2,
        help="Time slice used for RR (default: 2).",
    )

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _print_processes(console: Console, processes: List[Process], title: str) -> None:
    headers = ["PID", "Arrive", "Burst", "First run", "Complete", "Response", "Turnaround", "Wait"]

    proc_table = Table(title=title, box=box.SIMPLE_HEAVY)
    for h in headers:
        proc_table.add_column(h, justify="center" if h == "PID" else "right")

    for p in processes:
        proc_table.add_row(
            p.pid or "",
            str(p.arrival),
            str(p.burst),
            str(p.first_run),
            str(p.completion),
            str(p.response_time),
            str(p.turnaround_time),
            str(p.waiting_time),
        )

    console.print(proc_table)


def _print_result(console: Console, result: ScheduleResult, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.time_slice is not None:
        console.print(f"[bold]Time slice:[/bold] {result.time_slice}")

    console.print()

    if plain:
        console.print(render_gantt(result.timeline), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks)

    console.print()
    _print_processes(console, result.processes, "Per-process metrics")
    console.print()

    summary = summarize_process_metrics(result.processes)
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg response", f"{summary['avg_response']:.2f}")
    sys_table.add_row("Avg turnaround", f"{summary['avg_turnaround']:.2f}")
    sys_table.add_row("Avg waiting", f"{summary['avg_waiting']:.2f}")
    if result.system:
        sys_table.add_row("Throughput (proc/time)", f"{result.system.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{result.system.cpu_utilization*100:.1f}%")

    console.print(sys_table)


def _animate_result(console: Console, result: ScheduleResult, delay: float) -> None:
    """
    Simple time-stepped textual simulation using the computed schedule.
    """
    timeline = sorted(result.timeline, key=lambda s: (s.start_time, s.end_time))
    if not timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = timeline[-1].end_time
    console.print(f"[bold]Simulating {result.algorithm}[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(makespan):
        running = next((sl for sl in timeline if sl.start_time <= t < sl.end_time), None)
        if running is None:
            console.print(f"t={t:2d}: [idle]", markup=False)
        else:
            bar = "#" * (t - running.start_time + 1)
            console.print(f"t={t:2d}: {running.pid} [green]{bar}[/green]")
        time.sleep(delay)


def _compare(console: Console, processes: List[Process], algorithms: List[str], time_slice: int, title: str) -> None:
    summary_table = Table(title=title, box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Time slice", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg waiting", justify="right")

    for alg in algorithms:
        result = run_algorithm(alg, processes, time_slice=time_slice)
        summary = summarize_process_metrics(result.processes)
        summary_table.add_row(
            result.algorithm,
            "" if result.time_slice is None else str(result.time_slice),
            f"{summary['avg_response']:.2f}",
            f"{summary['avg_turnaround']:.2f}",
            f"{summary['avg_waiting']:.2f}",
        )

    console.print(summary_table)


def _demo(console: Console, time_slice: int) -> None:
    processes = sort_workload(sample_workload())
    for alg in ALGORITHMS:
        result = run_algorithm(alg, processes, time_slice=time_slice)
        summary = summarize_process_metrics(result.processes)
        label = result.algorithm if result.time_slice is None else f"{result.algorithm} (time slice {result.time_slice})"
        _print_processes(console, result.processes, f"{label} scheduling")
        console.print(f"Average Response Time: {summary['avg_response']:.2f}")
        console.print(f"Average Turnaround Time: {summary['avg_turnaround']:.2f}")
        console.print()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    try:
        if args.command == "run":
            processes = sort_workload(load_workload(Path(args.workload)))
            result = run_algorithm(args.algorithm, processes, time_slice=args.time_slice)
            if args.step:
                try:
                    _animate_result(console, result, delay=args.step_delay)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            _print_result(console, result, plain=args.plain)
            return 0

        if args.command == "compare":
            processes = sort_workload(load_workload(Path(args.workload)))
            _compare(console, processes, args.algorithms, args.time_slice, f"Algorithm comparison: {args.workload}")
            return 0

        if args.command == "demo":
            _demo(console, args.time_slice)
            return 0
    except (ValueError, OSError) as exc:
        logger.debug("command failed", exc_info=True)
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
