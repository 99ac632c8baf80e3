import pytest

from errors import ValidationError
from scheduler import (
    Interval,
    Process,
    ProcessState,
    SchedulingAlgorithm,
    SchedulingEngine,
    insert_idle_gaps,
    merge_intervals,
    run_scheduler,
    summarize_schedule,
)

FCFS = SchedulingAlgorithm.FCFS
SJF = SchedulingAlgorithm.SJF
SRTF = SchedulingAlgorithm.SRTF
RR = SchedulingAlgorithm.RR
PRIORITY = SchedulingAlgorithm.PRIORITY


def spans(intervals):
    return [(iv.name, iv.start, iv.end) for iv in intervals]


def busy_per_process(intervals):
    totals = {}
    for iv in intervals:
        if not iv.is_idle:
            totals[iv.name] = totals.get(iv.name, 0) + iv.duration
    return totals


# -----------------------------
# FCFS
# -----------------------------
def test_fcfs_example():
    procs = [Process("A", 0, 4), Process("B", 1, 3)]
    assert run_scheduler(procs, FCFS) == [Interval("A", 0, 4), Interval("B", 4, 7)]


def test_fcfs_orders_by_arrival_then_input():
    procs = [Process("C", 2, 1), Process("A", 0, 3), Process("B", 0, 2)]
    assert spans(run_scheduler(procs, FCFS)) == [("A", 0, 3), ("B", 3, 5), ("C", 5, 6)]


def test_fcfs_jumps_over_idle_time():
    procs = [Process("A", 0, 2), Process("B", 5, 1)]
    intervals = run_scheduler(procs, FCFS)
    assert spans(intervals) == [("A", 0, 2), ("B", 5, 6)]
    assert spans(insert_idle_gaps(intervals)) == [("A", 0, 2), ("Idle", 2, 5), ("B", 5, 6)]


def test_idle_gap_from_time_zero():
    intervals = run_scheduler([Process("A", 3, 2)], FCFS)
    assert spans(insert_idle_gaps(intervals)) == [("Idle", 0, 3), ("A", 3, 5)]


# -----------------------------
# SJF
# -----------------------------
def test_sjf_picks_shortest_ready_job():
    procs = [Process("A", 0, 8), Process("B", 1, 4), Process("C", 2, 2)]
    assert spans(run_scheduler(procs, SJF)) == [("A", 0, 8), ("C", 8, 10), ("B", 10, 14)]


def test_sjf_ties_break_on_arrival_then_input_order():
    procs = [Process("B", 2, 3), Process("C", 1, 3), Process("A", 0, 5), Process("D", 1, 3)]
    assert [iv.name for iv in run_scheduler(procs, SJF)] == ["A", "C", "D", "B"]


# -----------------------------
# SRTF
# -----------------------------
def test_srtf_preempts_for_shorter_arrival():
    procs = [Process("A", 0, 8), Process("B", 1, 4), Process("C", 2, 9), Process("D", 3, 5)]
    assert spans(run_scheduler(procs, SRTF)) == [
        ("A", 0, 1), ("B", 1, 5), ("D", 5, 10), ("A", 10, 17), ("C", 17, 26),
    ]


def test_srtf_does_not_preempt_on_equal_remaining():
    procs = [Process("A", 0, 3), Process("B", 1, 2)]
    assert spans(run_scheduler(procs, SRTF)) == [("A", 0, 3), ("B", 3, 5)]


def test_srtf_tie_breaks_on_input_order_for_same_arrival():
    procs = [Process("A", 0, 5), Process("C", 1, 2), Process("B", 1, 2)]
    assert spans(run_scheduler(procs, SRTF)) == [
        ("A", 0, 1), ("C", 1, 3), ("B", 3, 5), ("A", 5, 9),
    ]


def test_srtf_tie_breaks_on_arrival_before_input_order():
    # at t=4 A and B both have 2 units left; A arrived first
    procs = [Process("B", 3, 2), Process("C", 2, 2), Process("A", 0, 4)]
    assert spans(run_scheduler(procs, SRTF)) == [
        ("A", 0, 2), ("C", 2, 4), ("A", 4, 6), ("B", 6, 8),
    ]


def test_srtf_records_preemption():
    engine = SchedulingEngine()
    engine.run([Process("A", 0, 8), Process("B", 1, 4)], SRTF)
    assert (1, "A", ProcessState.RUNNING, ProcessState.READY) in engine.transitions


# -----------------------------
# Round-Robin
# -----------------------------
def test_round_robin_example():
    procs = [Process("A", 0, 5), Process("B", 1, 3)]
    intervals = run_scheduler(procs, RR, quantum=2)
    assert spans(intervals) == [
        ("A", 0, 2), ("B", 2, 4), ("A", 4, 6), ("B", 6, 7), ("A", 7, 8),
    ]
    assert busy_per_process(intervals) == {"A": 5, "B": 3}


def test_round_robin_new_arrival_queues_before_preempted_job():
    procs = [Process("A", 0, 4), Process("B", 2, 2)]
    assert spans(run_scheduler(procs, RR, quantum=2)) == [("A", 0, 2), ("B", 2, 4), ("A", 4, 6)]


def test_round_robin_keeps_slices_separate():
    intervals = run_scheduler([Process("A", 0, 5)], RR, quantum=2)
    assert spans(intervals) == [("A", 0, 2), ("A", 2, 4), ("A", 4, 5)]
    assert spans(merge_intervals(intervals)) == [("A", 0, 5)]


def test_round_robin_leaves_input_untouched():
    procs = [Process("A", 0, 5), Process("B", 1, 3)]
    run_scheduler(procs, RR, quantum=1)
    assert [p.burst for p in procs] == [5, 3]


def test_merge_preserves_busy_time_and_order():
    procs = [Process("A", 0, 7), Process("B", 0, 3), Process("C", 9, 4)]
    intervals = run_scheduler(procs, RR, quantum=2)
    merged = merge_intervals(intervals)
    assert busy_per_process(merged) == busy_per_process(intervals) == {"A": 7, "B": 3, "C": 4}
    for prev, cur in zip(merged, merged[1:]):
        assert prev.end <= cur.start
        assert not (prev.name == cur.name and prev.end == cur.start)


# -----------------------------
# Priority
# -----------------------------
def test_priority_runs_most_urgent_first():
    procs = [Process("A", 0, 4, 3), Process("B", 1, 2, 1), Process("C", 2, 3, 2)]
    assert spans(run_scheduler(procs, PRIORITY)) == [("A", 0, 4), ("B", 4, 6), ("C", 6, 9)]


def test_priority_ties_break_on_arrival_then_input_order():
    procs = [Process("X", 0, 2, 0), Process("B", 1, 1, 5), Process("A", 1, 1, 5), Process("C", 0, 1, 5)]
    assert [iv.name for iv in run_scheduler(procs, PRIORITY)] == ["X", "C", "B", "A"]


# -----------------------------
# Shared properties
# -----------------------------
WORKLOAD = [
    Process("P1", 0, 5, 2),
    Process("P2", 1, 3, 1),
    Process("P3", 2, 8, 4),
    Process("P4", 3, 6, 3),
    Process("P5", 30, 2, 0),
]


@pytest.mark.parametrize("algorithm", list(SchedulingAlgorithm))
def test_every_process_finishes_once(algorithm):
    engine = SchedulingEngine()
    intervals = engine.run(WORKLOAD, algorithm, quantum=3)

    assert set(engine.states.values()) == {ProcessState.FINISHED}
    for p in WORKLOAD:
        path = [(old, new) for _, name, old, new in engine.transitions if name == p.name]
        assert path[0] == (ProcessState.UNARRIVED, ProcessState.READY)
        assert path[-1] == (ProcessState.RUNNING, ProcessState.FINISHED)
        assert sum(1 for _, new in path if new is ProcessState.FINISHED) == 1

    assert busy_per_process(intervals) == {p.name: p.burst for p in WORKLOAD}
    for prev, cur in zip(intervals, intervals[1:]):
        assert prev.start < prev.end
        assert prev.end <= cur.start


@pytest.mark.parametrize("algorithm", list(SchedulingAlgorithm))
def test_idle_gaps_cover_whole_timeline(algorithm):
    timeline = insert_idle_gaps(run_scheduler(WORKLOAD, algorithm, quantum=3))
    assert timeline[0].start == 0
    for prev, cur in zip(timeline, timeline[1:]):
        assert prev.end == cur.start
    idle = [iv for iv in timeline if iv.is_idle]
    assert sum(iv.duration for iv in idle) == timeline[-1].end - sum(p.burst for p in WORKLOAD)


@pytest.mark.parametrize("algorithm", list(SchedulingAlgorithm))
def test_rerun_is_identical(algorithm):
    engine = SchedulingEngine()
    first = engine.run(WORKLOAD, algorithm, quantum=2)
    assert engine.run(WORKLOAD, algorithm, quantum=2) == first


def test_algorithm_accepts_plain_string():
    assert run_scheduler([Process("A", 0, 1)], "FCFS") == [Interval("A", 0, 1)]


def test_illegal_state_change_raises():
    engine = SchedulingEngine()
    engine.run([Process("A", 0, 1)], FCFS)
    job = engine.jobs[0]
    with pytest.raises(RuntimeError, match="FINISHED -> RUNNING"):
        engine._transition(job, ProcessState.RUNNING)


# -----------------------------
# Validation
# -----------------------------
@pytest.mark.parametrize("kwargs", [
    dict(name="A", arrival=0, burst=0),
    dict(name="A", arrival=-1, burst=2),
    dict(name="", arrival=0, burst=2),
    dict(name="A", arrival=0, burst=2, priority="high"),
    dict(name="A", arrival=0, burst=1.5),
])
def test_process_rejects_bad_fields(kwargs):
    with pytest.raises(ValidationError):
        Process(**kwargs)


def test_rejects_empty_process_list():
    with pytest.raises(ValidationError, match="At least one process"):
        run_scheduler([], FCFS)


def test_rejects_duplicate_names():
    with pytest.raises(ValidationError, match="Duplicate"):
        run_scheduler([Process("A", 0, 1), Process("A", 1, 1)], FCFS)


def test_rejects_reserved_idle_name():
    with pytest.raises(ValidationError, match="reserved"):
        run_scheduler([Process("Idle", 0, 1)], FCFS)


@pytest.mark.parametrize("quantum", [None, 0, -2, 1.5])
def test_round_robin_requires_positive_quantum(quantum):
    with pytest.raises(ValidationError, match="quantum"):
        run_scheduler([Process("A", 0, 1)], RR, quantum=quantum)


def test_rejects_unknown_algorithm():
    with pytest.raises(ValidationError, match="Unknown scheduling algorithm"):
        run_scheduler([Process("A", 0, 1)], "LOTTERY")


def test_rejects_malformed_record():
    with pytest.raises(ValidationError, match="Malformed"):
        run_scheduler([("A", 0, 1)], FCFS)


# -----------------------------
# Summary
# -----------------------------
def test_summary_for_fcfs_example():
    procs = [Process("A", 0, 4), Process("B", 1, 3)]
    summary = summarize_schedule(procs, run_scheduler(procs, FCFS))
    assert summary["rows"][1] == {
        "name": "B", "arrival": 1, "burst": 3, "priority": 0,
        "first_start": 4, "completion": 7, "turnaround": 6, "waiting": 3, "response": 3,
    }
    assert summary["avg_turnaround"] == 5.0
    assert summary["avg_waiting"] == 1.5
    assert summary["makespan"] == 7
    assert summary["cpu_utilization"] == 1.0
    assert summary["context_switches"] == 1


def test_summary_counts_idle_time():
    procs = [Process("A", 0, 2), Process("B", 5, 1)]
    summary = summarize_schedule(procs, insert_idle_gaps(run_scheduler(procs, FCFS)))
    assert summary["busy_time"] == 3
    assert summary["idle_time"] == 3
    assert summary["cpu_utilization"] == 0.5


def test_summary_round_robin_switches():
    procs = [Process("A", 0, 5), Process("B", 1, 3)]
    summary = summarize_schedule(procs, run_scheduler(procs, RR, quantum=2))
    assert summary["context_switches"] == 4
    assert summary["rows"][0]["response"] == 0
    assert summary["rows"][1]["response"] == 1
