import math
import random

import pytest

from cpusched.algorithms import (
    fifo,
    sjf,
    stcf,
    rr,
    run_algorithm,
    schedule_fifo,
    schedule_sjf,
    schedule_stcf,
    schedule_rr,
)
from cpusched.errors import EmptyWorkloadError, InvalidProcessError, InvalidTimeSliceError, UnknownAlgorithmError
from cpusched.models import NOT_STARTED, Process


def _procs():
    return [
        Process(arrival=0, duration=6, pid="P1"),
        Process(arrival=1, duration=4, pid="P2"),
        Process(arrival=2, duration=3, pid="P3"),
    ]


def _gappy():
    return [
        Process(arrival=0, duration=2, pid="A"),
        Process(arrival=5, duration=3, pid="B"),
    ]


def _random_workload(seed):
    rng = random.Random(seed)
    procs = [Process(arrival=rng.randint(0, 20), duration=rng.randint(1, 9)) for _ in range(rng.randint(1, 12))]
    return sorted(procs, key=lambda p: (p.arrival, p.duration))


def _slices(res):
    return [(s.pid, s.start_time, s.end_time) for s in res.timeline]


def test_fifo_order():
    res = schedule_fifo(_procs())
    assert [p.pid for p in res.processes] == ["P1", "P2", "P3"]
    assert [p.first_run for p in res.processes] == [0, 6, 10]
    assert [p.completion for p in res.processes] == [6, 10, 13]


def test_sjf_order():
    res = schedule_sjf(_procs())
    # Only P1 is ready at t=0; at t=6 P3 is shorter than P2.
    assert _slices(res) == [("P1", 0, 6), ("P3", 6, 9), ("P2", 9, 13)]
    assert [p.pid for p in res.processes] == ["P1", "P3", "P2"]


def test_stcf_preempts_for_shorter_arrival():
    res = schedule_stcf(_procs())
    assert _slices(res) == [("P1", 0, 1), ("P2", 1, 5), ("P3", 5, 8), ("P1", 8, 13)]
    by_pid = {p.pid: p for p in res.processes}
    assert by_pid["P1"].first_run == 0
    assert by_pid["P2"].first_run == 1
    assert by_pid["P3"].first_run == 5
    assert [p.pid for p in res.processes] == ["P2", "P3", "P1"]


def test_rr_time_slice_2():
    res = schedule_rr(_procs(), time_slice=2)
    assert _slices(res) == [
        ("P1", 0, 2),
        ("P2", 2, 4),
        ("P3", 4, 6),
        ("P1", 6, 8),
        ("P2", 8, 10),
        ("P3", 10, 11),
        ("P1", 11, 13),
    ]
    assert [(p.pid, p.first_run, p.completion) for p in res.processes] == [
        ("P2", 2, 10),
        ("P3", 4, 11),
        ("P1", 0, 13),
    ]
    assert res.time_slice == 2


def test_rr_large_slice_behaves_like_fifo():
    res = rr(_procs(), time_slice=100)
    assert [(p.first_run, p.completion) for p in res] == [(0, 6), (6, 10), (10, 13)]


@pytest.mark.parametrize("algorithm", ["fifo", "sjf", "stcf", "rr"])
def test_single_process(algorithm):
    res = run_algorithm(algorithm, [Process(arrival=0, duration=5)], time_slice=2)
    assert len(res.processes) == 1
    p = res.processes[0]
    assert p.first_run == 0
    assert p.completion == 5
    assert p.duration == 0


@pytest.mark.parametrize("algorithm", ["fifo", "sjf", "stcf", "rr"])
def test_idle_gap_waits_for_next_arrival(algorithm):
    res = run_algorithm(algorithm, _gappy(), time_slice=2)
    by_pid = {p.pid: p for p in res.processes}
    assert (by_pid["A"].first_run, by_pid["A"].completion) == (0, 2)
    assert (by_pid["B"].first_run, by_pid["B"].completion) == (5, 8)
    assert res.system.cpu_busy_time == 5


def test_clock_starts_at_first_arrival():
    res = schedule_fifo([Process(arrival=3, duration=2), Process(arrival=4, duration=1)])
    assert [(p.first_run, p.completion) for p in res.processes] == [(3, 5), (5, 6)]


def test_input_is_not_mutated():
    workload = _procs()
    stcf(workload)
    rr(workload, 2)
    assert [(p.arrival, p.duration, p.first_run, p.completion) for p in workload] == [
        (0, 6, NOT_STARTED, 0),
        (1, 4, NOT_STARTED, 0),
        (2, 3, NOT_STARTED, 0),
    ]


def test_output_records_are_independent_between_runs():
    workload = _procs()
    first = sjf(workload)
    second = sjf(workload)
    assert all(a is not b for a, b in zip(first, second))
    assert not any(out is src for out in first for src in workload)


def test_unlabelled_processes_get_positional_pids():
    res = fifo([Process(0, 2), Process(1, 1)])
    assert [p.pid for p in res] == ["P1", "P2"]


def test_unsorted_input_is_scheduled_in_arrival_order():
    res = fifo(list(reversed(_procs())))
    assert [p.pid for p in res] == ["P1", "P2", "P3"]


@pytest.mark.parametrize("func", [fifo, sjf, stcf, lambda w: rr(w, 2)])
def test_empty_workload_rejected(func):
    with pytest.raises(EmptyWorkloadError):
        func([])


@pytest.mark.parametrize("time_slice", [0, -1, None, 1.5, True])
def test_rr_rejects_bad_time_slice(time_slice):
    with pytest.raises(InvalidTimeSliceError):
        schedule_rr(_procs(), time_slice=time_slice)


def test_run_algorithm_aliases_and_errors():
    assert run_algorithm("FCFS", _procs()).algorithm == "FIFO"
    assert run_algorithm("srtf", _procs()).algorithm == "STCF"
    with pytest.raises(UnknownAlgorithmError):
        run_algorithm("mlfq", _procs())
    with pytest.raises(InvalidTimeSliceError):
        run_algorithm("rr", _procs())


@pytest.mark.parametrize("seed", range(25))
@pytest.mark.parametrize("algorithm", ["fifo", "sjf", "stcf", "rr"])
def test_schedule_properties(algorithm, seed):
    workload = _random_workload(seed)
    res = run_algorithm(algorithm, workload, time_slice=3)

    assert len(res.processes) == len(workload)
    assert sorted((p.arrival, p.burst) for p in res.processes) == sorted(
        (p.arrival, p.duration) for p in workload
    )
    for p in res.processes:
        assert p.arrival <= p.first_run <= p.completion
        assert p.duration == 0

    # The single CPU never runs two slices at once and time only moves forward.
    for prev, cur in zip(res.timeline, res.timeline[1:]):
        assert prev.end_time <= cur.start_time
    assert res.system.cpu_busy_time == sum(p.duration for p in workload)

    if algorithm in {"fifo", "sjf"}:
        for p in res.processes:
            assert p.completion - p.first_run == p.burst


@pytest.mark.parametrize("seed", range(10))
@pytest.mark.parametrize("time_slice", [1, 2, 4])
def test_rr_dispatch_counts(seed, time_slice):
    workload = _random_workload(seed)
    res = schedule_rr(workload, time_slice=time_slice)

    dispatches = {}
    for s in res.timeline:
        assert s.end_time - s.start_time <= time_slice
        dispatches[s.pid] = dispatches.get(s.pid, 0) + 1

    for p in res.processes:
        assert dispatches[p.pid] == math.ceil(p.burst / time_slice)


def test_auto_pid_skips_explicit_labels():
    res = schedule_stcf([Process(0, 1, pid="P2"), Process(1, 2)])
    assert [p.pid for p in res.processes] == ["P2", "P3"]
    assert _slices(res) == [("P2", 0, 1), ("P3", 1, 3)]


def test_duplicate_pids_rejected():
    with pytest.raises(InvalidProcessError, match="duplicate"):
        schedule_stcf([Process(0, 1, pid="A"), Process(1, 2, pid="A")])


@pytest.mark.parametrize("time_slice", [1, 2])
def test_rr_dispatch_counts_with_mixed_labels(time_slice):
    res = schedule_rr([Process(0, 3, pid="P2"), Process(0, 2), Process(1, 3)], time_slice=time_slice)
    assert len({p.pid for p in res.processes}) == 3
    dispatches = {}
    for s in res.timeline:
        dispatches[s.pid] = dispatches.get(s.pid, 0) + 1
    for p in res.processes:
        assert dispatches[p.pid] == math.ceil(p.burst / time_slice)
