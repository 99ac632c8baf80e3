# scheduler.py
# CPU scheduling engine: turns a process set into execution intervals.

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from errors import ValidationError

logger = logging.getLogger(__name__)

IDLE = "Idle"


class SchedulingAlgorithm(str, Enum):
    FCFS = "FCFS"
    SJF = "SJF"
    RR = "RR"
    SRTF = "SRTF"
    PRIORITY = "PRIORITY"


class ProcessState(Enum):
    UNARRIVED = auto()
    READY = auto()
    RUNNING = auto()
    FINISHED = auto()


# allowed state changes; RUNNING -> READY only happens under SRTF and RR
_TRANSITIONS = {
    ProcessState.UNARRIVED: {ProcessState.READY},
    ProcessState.READY: {ProcessState.RUNNING},
    ProcessState.RUNNING: {ProcessState.READY, ProcessState.FINISHED},
    ProcessState.FINISHED: set(),
}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class Process:
    """
    A schedulable job. Lower priority values are more urgent.
    """
    name: str
    arrival: int
    burst: int
    priority: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("Process name must be a non-empty string")
        if not _is_int(self.arrival) or self.arrival < 0:
            raise ValidationError(f"Process {self.name}: arrival must be a non-negative integer, got {self.arrival!r}")
        if not _is_int(self.burst) or self.burst <= 0:
            raise ValidationError(f"Process {self.name}: burst must be a positive integer, got {self.burst!r}")
        if not _is_int(self.priority):
            raise ValidationError(f"Process {self.name}: priority must be an integer, got {self.priority!r}")


@dataclass(frozen=True)
class Interval:
    """A half-open span [start, end) of CPU time given to one process (or Idle)."""
    name: str
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_idle(self) -> bool:
        return self.name == IDLE


@dataclass
class _Job:
    process: Process
    order: int          # position in the caller's list
    remaining: int
    state: ProcessState = field(default=ProcessState.UNARRIVED)

    @property
    def name(self) -> str:
        return self.process.name

    @property
    def arrival(self) -> int:
        return self.process.arrival


class SchedulingEngine:
    """
    Single-CPU scheduler for FCFS, SJF, SRTF, Round-Robin and Priority.

    Every run starts from scratch: jobs are admitted to the ready queue when
    their arrival time is reached, and when nothing is ready the clock jumps
    straight to the next arrival. The returned intervals never include idle
    time; see insert_idle_gaps for that.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.time = 0
        self.jobs: List[_Job] = []
        self.event_log: List[str] = []
        self.transitions: List[Tuple[int, str, ProcessState, ProcessState]] = []
        self._pending: List[_Job] = []
        self._ready: List[_Job] = []

    @property
    def states(self) -> Dict[str, ProcessState]:
        return {job.name: job.state for job in self.jobs}

    # -----------------------------
    # Run Dispatcher
    # -----------------------------
    def run(self, processes: Sequence[Process], algorithm: SchedulingAlgorithm,
            quantum: Optional[int] = None) -> List[Interval]:
        algorithm = _coerce_algorithm(algorithm)
        processes = _validate(processes, algorithm, quantum)
        self.reset()

        self.jobs = [_Job(p, i, p.burst) for i, p in enumerate(processes)]
        self._pending = sorted(self.jobs, key=lambda j: (j.arrival, j.order))

        logger.info("Scheduling run: algorithm=%s processes=%d quantum=%s",
                    algorithm.value, len(self.jobs), quantum)

        if algorithm is SchedulingAlgorithm.FCFS:
            intervals = self._run_to_completion(lambda j: (j.arrival, j.order))
        elif algorithm is SchedulingAlgorithm.SJF:
            intervals = self._run_to_completion(lambda j: (j.process.burst, j.arrival, j.order))
        elif algorithm is SchedulingAlgorithm.PRIORITY:
            intervals = self._run_to_completion(lambda j: (j.process.priority, j.arrival, j.order))
        elif algorithm is SchedulingAlgorithm.RR:
            intervals = self._round_robin(quantum)
        else:
            intervals = self._srtf()

        logger.info("Scheduling finished at t=%d with %d intervals", self.time, len(intervals))
        return intervals

    # -----------------------------
    # Algorithms
    # -----------------------------
    def _run_to_completion(self, key: Callable[[_Job], tuple]) -> List[Interval]:
        """Non-preemptive loop shared by FCFS, SJF and Priority."""
        intervals = []

        while self._pending or self._ready:
            self._admit()
            if not self._ready:
                self._skip_to_next_arrival()
                continue

            job = min(self._ready, key=key)
            self._ready.remove(job)
            self._transition(job, ProcessState.RUNNING)

            start = self.time
            self.time += job.remaining
            job.remaining = 0
            intervals.append(Interval(job.name, start, self.time))
            self._transition(job, ProcessState.FINISHED)

        return intervals

    def _round_robin(self, quantum: int) -> List[Interval]:
        intervals = []

        while self._pending or self._ready:
            self._admit()
            if not self._ready:
                self._skip_to_next_arrival()
                continue

            job = self._ready.pop(0)
            self._transition(job, ProcessState.RUNNING)

            start = self.time
            slice_len = min(job.remaining, quantum)
            self.time += slice_len
            job.remaining -= slice_len
            intervals.append(Interval(job.name, start, self.time))

            # arrivals during the slice queue up ahead of the preempted job
            self._admit()
            if job.remaining > 0:
                self._transition(job, ProcessState.READY)
                self._ready.append(job)
            else:
                self._transition(job, ProcessState.FINISHED)

        return intervals

    def _srtf(self) -> List[Interval]:
        intervals: List[Interval] = []
        current: Optional[_Job] = None

        def shortest(job: _Job):
            return (job.remaining, job.arrival, job.order)

        while self._pending or self._ready or current is not None:
            self._admit()
            if current is None and not self._ready:
                self._skip_to_next_arrival()
                continue

            best = min(self._ready, key=shortest) if self._ready else None
            if current is None:
                current = best
                self._ready.remove(current)
                self._transition(current, ProcessState.RUNNING)
            elif best is not None and best.remaining < current.remaining:
                self._transition(current, ProcessState.READY)
                self._ready.append(current)
                current = best
                self._ready.remove(current)
                self._transition(current, ProcessState.RUNNING)

            # one time unit
            last = intervals[-1] if intervals else None
            if last is not None and last.name == current.name and last.end == self.time:
                intervals[-1] = Interval(last.name, last.start, self.time + 1)
            else:
                intervals.append(Interval(current.name, self.time, self.time + 1))
            self.time += 1
            current.remaining -= 1

            if current.remaining == 0:
                self._transition(current, ProcessState.FINISHED)
                current = None

        return intervals

    # -----------------------------
    # Helpers
    # -----------------------------
    def _admit(self):
        while self._pending and self._pending[0].arrival <= self.time:
            job = self._pending.pop(0)
            self._transition(job, ProcessState.READY)
            self._ready.append(job)

    def _skip_to_next_arrival(self):
        nxt = self._pending[0].arrival
        self._log(f"t={self.time}: CPU idle until t={nxt}")
        self.time = max(self.time, nxt)

    def _transition(self, job: _Job, new_state: ProcessState):
        if new_state not in _TRANSITIONS[job.state]:
            raise RuntimeError(f"Illegal state change for {job.name}: {job.state.name} -> {new_state.name}")
        self.transitions.append((self.time, job.name, job.state, new_state))
        self._log(f"t={self.time}: {job.name} {job.state.name} -> {new_state.name}")
        job.state = new_state

    def _log(self, message: str):
        self.event_log.append(message)
        logger.debug(message)


def _coerce_algorithm(algorithm) -> SchedulingAlgorithm:
    try:
        return SchedulingAlgorithm(algorithm)
    except ValueError:
        raise ValidationError(f"Unknown scheduling algorithm: {algorithm!r}") from None


def _validate(processes: Sequence[Process], algorithm: SchedulingAlgorithm,
              quantum: Optional[int]) -> List[Process]:
    processes = list(processes)
    if not processes:
        raise ValidationError("At least one process is required")

    seen = set()
    for p in processes:
        if not isinstance(p, Process):
            raise ValidationError(f"Malformed process record: {p!r}")
        if p.name == IDLE:
            raise ValidationError(f"Process name {IDLE!r} is reserved for idle gaps")
        if p.name in seen:
            raise ValidationError(f"Duplicate process name: {p.name}")
        seen.add(p.name)

    if algorithm is SchedulingAlgorithm.RR:
        if quantum is None or not _is_int(quantum) or quantum <= 0:
            raise ValidationError(f"Round-Robin needs a positive integer quantum, got {quantum!r}")

    return processes


def run_scheduler(processes: Sequence[Process], algorithm: SchedulingAlgorithm,
                  quantum: Optional[int] = None) -> List[Interval]:
    """Schedule a process set with a fresh engine."""
    return SchedulingEngine().run(processes, algorithm, quantum)


# --------------------------------------
# Presentation helpers
# --------------------------------------
def insert_idle_gaps(intervals: Sequence[Interval]) -> List[Interval]:
    """
    Fill every hole in the timeline with an Idle interval, including a
    leading one when the first job does not start at time 0.
    """
    filled: List[Interval] = []
    prev_end = 0

    for interval in intervals:
        if interval.start > prev_end:
            filled.append(Interval(IDLE, prev_end, interval.start))
        filled.append(interval)
        prev_end = interval.end

    return filled


def merge_intervals(intervals: Sequence[Interval]) -> List[Interval]:
    """Coalesce adjacent intervals of the same process that touch."""
    merged: List[Interval] = []

    for interval in intervals:
        last = merged[-1] if merged else None
        if last is not None and last.name == interval.name and last.end == interval.start:
            merged[-1] = Interval(last.name, last.start, interval.end)
        else:
            merged.append(interval)

    return merged


def summarize_schedule(processes: Sequence[Process], intervals: Sequence[Interval]) -> Dict[str, object]:
    """
    Per-process timing metrics and CPU-level totals for a finished schedule.

    Returns a dict with "rows" (one dict per process, in input order),
    the averages of turnaround, waiting and response time, and the
    makespan, busy/idle time, CPU utilization and context switch count.
    """
    work = [iv for iv in intervals if not iv.is_idle]

    rows = []
    for p in processes:
        own = [iv for iv in work if iv.name == p.name]
        first_start = min(iv.start for iv in own)
        completion = max(iv.end for iv in own)
        turnaround = completion - p.arrival
        rows.append({
            "name": p.name,
            "arrival": p.arrival,
            "burst": p.burst,
            "priority": p.priority,
            "first_start": first_start,
            "completion": completion,
            "turnaround": turnaround,
            "waiting": turnaround - p.burst,
            "response": first_start - p.arrival,
        })

    n = len(rows)
    makespan = max(iv.end for iv in work)
    busy_time = sum(iv.duration for iv in work)

    ordered = sorted(work, key=lambda iv: iv.start)
    context_switches = sum(
        1 for prev, cur in zip(ordered, ordered[1:]) if prev.name != cur.name
    )

    return {
        "rows": rows,
        "avg_turnaround": round(sum(r["turnaround"] for r in rows) / n, 2),
        "avg_waiting": round(sum(r["waiting"] for r in rows) / n, 2),
        "avg_response": round(sum(r["response"] for r in rows) / n, 2),
        "makespan": makespan,
        "busy_time": busy_time,
        "idle_time": makespan - busy_time,
        "cpu_utilization": round(busy_time / makespan, 2),
        "context_switches": context_switches,
    }
