# engine.py

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from errors import ValidationError

logger = logging.getLogger(__name__)


class ReplacementPolicy(str, Enum):
    """
    Page replacement algorithms supported by the engine.

    FIFO: evict the page that was loaded earliest
    LRU:  evict the page whose last reference is oldest
    OPT:  evict the page whose next reference is farthest away (Belady)
    """
    FIFO = "FIFO"
    LRU = "LRU"
    OPT = "OPT"


@dataclass(frozen=True)
class StepRecord:
    """
    Outcome of a single page reference.

    Attributes:
        page (int): The referenced page
        hit (bool): True if the page was already resident
        frames (Tuple[int, ...]): Frame table contents after the step
        evicted (Optional[int]): Page replaced to make room, None if no eviction
    """
    page: int
    hit: bool
    frames: Tuple[int, ...]
    evicted: Optional[int] = None


# -----------------------------
# Victim Selectors
# -----------------------------
# Each selector receives the current frame table, the whole reference string
# and the index of the faulting reference, and returns a frame position.

def _fifo_victim(frames: List[int], refs: Sequence[int], index: int) -> int:
    # frame table is kept in load order, the head is the oldest page
    return 0


def _lru_victim(frames: List[int], refs: Sequence[int], index: int) -> int:
    best_pos = 0
    best_last = None

    for pos, page in enumerate(frames):
        last = -1  # never referenced before: infinitely old
        for j in range(index - 1, -1, -1):
            if refs[j] == page:
                last = j
                break
        if best_last is None or last < best_last:
            best_last = last
            best_pos = pos

    return best_pos


def _opt_victim(frames: List[int], refs: Sequence[int], index: int) -> int:
    best_pos = 0
    best_next = -1

    for pos, page in enumerate(frames):
        nxt = float('inf')  # never used again
        for j in range(index + 1, len(refs)):
            if refs[j] == page:
                nxt = j
                break
        if nxt > best_next:
            best_next = nxt
            best_pos = pos
        if nxt == float('inf'):
            break

    return best_pos


VICTIM_SELECTORS: Dict[ReplacementPolicy, Callable[[List[int], Sequence[int], int], int]] = {
    ReplacementPolicy.FIFO: _fifo_victim,
    ReplacementPolicy.LRU: _lru_victim,
    ReplacementPolicy.OPT: _opt_victim,
}


class PageReplacementEngine:
    """
    Simulates a fixed-capacity frame table under one replacement policy.

    A run consumes the whole reference string at once and returns one
    StepRecord per reference. The engine keeps a readable event log of the
    last run, which the UI shows next to the frame table.

    Attributes:
        capacity (int): Number of frames in the table
        policy (ReplacementPolicy): Policy used to pick victims
        frames (List[int]): Frame table state at the end of the last run
        hits (int): Hits counted in the last run
        faults (int): Faults counted in the last run
        event_log (List[str]): Messages describing every decision of the last run
    """

    def __init__(self, capacity: int, policy: ReplacementPolicy = ReplacementPolicy.FIFO):
        """
        Args:
            capacity (int): Number of frames, must be a positive integer
            policy (ReplacementPolicy): Replacement policy, FIFO by default

        Raises:
            ValidationError: If capacity is not a positive integer or the
                policy is unknown
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValidationError(f"Frame capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self.policy = _coerce_policy(policy)
        self.reset()

    def reset(self):
        """Clear the frame table, counters and event log."""
        self.frames: List[int] = []
        self.hits = 0
        self.faults = 0
        self.event_log: List[str] = []

    # -----------------------------
    # Run
    # -----------------------------
    def run(self, reference_string: Sequence[int]) -> List[StepRecord]:
        """
        Replay a reference string from an empty frame table.

        Args:
            reference_string (Sequence[int]): Page numbers in access order

        Returns:
            List[StepRecord]: One record per reference, in order

        Raises:
            ValidationError: If the reference string is empty or holds
                anything other than integers
        """
        refs = _validate_reference_string(reference_string)
        self.reset()

        select_victim = VICTIM_SELECTORS[self.policy]
        steps: List[StepRecord] = []

        logger.info("Page replacement run: policy=%s capacity=%d refs=%d",
                    self.policy.value, self.capacity, len(refs))

        for index, page in enumerate(refs):
            # ----- PAGE HIT -----
            if page in self.frames:
                self.hits += 1
                self._log(f"Hit: Page {page}")
                steps.append(StepRecord(page, True, tuple(self.frames)))
                continue

            # ----- PAGE FAULT -----
            self.faults += 1
            self._log(f"Fault: Page {page} not in memory")

            evicted = None
            if len(self.frames) < self.capacity:
                self.frames.append(page)
                self._log(f"Loaded: Page {page} -> Frame {len(self.frames) - 1}")
            else:
                pos = select_victim(self.frames, refs, index)
                evicted = self.frames[pos]
                self._log(f"Evicting: Page {evicted} from Frame {pos}")
                if self.policy is ReplacementPolicy.FIFO:
                    # queue discipline: drop the head, new page joins the tail
                    del self.frames[pos]
                    self.frames.append(page)
                    self._log(f"Loaded: Page {page} -> Frame {len(self.frames) - 1} (replaced)")
                else:
                    self.frames[pos] = page
                    self._log(f"Loaded: Page {page} -> Frame {pos} (replaced)")

            steps.append(StepRecord(page, False, tuple(self.frames), evicted))

        logger.info("Page replacement finished: hits=%d faults=%d", self.hits, self.faults)
        return steps

    def _log(self, message: str):
        self.event_log.append(message)
        logger.debug(message)

    # --------------------------------------
    # Statistics
    # --------------------------------------
    def get_stats(self) -> Dict[str, float]:
        """
        Return the statistics of the last run.

        Returns:
            Dict[str, float]: total_refs, hits, faults, hit_ratio and
                fault_ratio (ratios rounded to two decimals)
        """
        return _stats(self.hits, self.faults)


def _coerce_policy(policy) -> ReplacementPolicy:
    try:
        return ReplacementPolicy(policy)
    except ValueError:
        raise ValidationError(f"Unknown replacement policy: {policy!r}") from None


def _validate_reference_string(reference_string: Sequence[int]) -> Tuple[int, ...]:
    refs = tuple(reference_string)
    if not refs:
        raise ValidationError("Reference string must contain at least one page")
    for i, page in enumerate(refs):
        if isinstance(page, bool) or not isinstance(page, int):
            raise ValidationError(f"Reference at position {i} is not an integer page number: {page!r}")
    return refs


def _stats(hits: int, faults: int) -> Dict[str, float]:
    total_refs = hits + faults
    hit_ratio = (hits / total_refs) if total_refs > 0 else 0.0
    fault_ratio = (faults / total_refs) if total_refs > 0 else 0.0

    return {
        "total_refs": total_refs,
        "hits": hits,
        "faults": faults,
        "hit_ratio": round(hit_ratio, 2),
        "fault_ratio": round(fault_ratio, 2),
    }


def run_page_replacement(reference_string: Sequence[int], capacity: int,
                         policy: ReplacementPolicy = ReplacementPolicy.FIFO) -> List[StepRecord]:
    """Run one policy over a reference string with a fresh engine."""
    return PageReplacementEngine(capacity, policy).run(reference_string)


def summarize(steps: Sequence[StepRecord]) -> Dict[str, float]:
    """Derive hit/fault statistics from a list of step records."""
    hits = sum(1 for s in steps if s.hit)
    return _stats(hits, len(steps) - hits)


def compare_policies(reference_string: Sequence[int], capacity: int) -> Dict[ReplacementPolicy, Dict[str, float]]:
    """Summaries of every policy over the same input, keyed by policy."""
    return {
        policy: summarize(run_page_replacement(reference_string, capacity, policy))
        for policy in ReplacementPolicy
    }
