# session.py
# Playback handle over a finished simulation.

import logging
from typing import Generic, Iterator, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SimulationRun(Generic[T]):
    """
    Cursor over a fully computed event sequence.

    The renderer pulls events one at a time (from a timer or a Step button)
    and may cancel or restart playback at any moment. None of this touches
    the events themselves, which are frozen when the run is created.

    Attributes:
        kind (str): What produced the events, e.g. "paging" or "scheduling"
        events (Tuple[T, ...]): The complete event sequence
        position (int): Number of events revealed so far
        cancelled (bool): Set by cancel(); stops step() and iteration
    """

    def __init__(self, events: Sequence[T], kind: str = "", summary: Optional[dict] = None):
        self.kind = kind
        self.events: Tuple[T, ...] = tuple(events)
        self.summary = summary or {}
        self.position = 0
        self.cancelled = False

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[T]:
        while True:
            event = self.step()
            if event is None:
                return
            yield event

    def step(self) -> Optional[T]:
        """Reveal and return the next event, or None once finished or cancelled."""
        if self.cancelled or self.done:
            return None
        event = self.events[self.position]
        self.position += 1
        return event

    def cancel(self):
        if not self.cancelled:
            logger.info("%s run cancelled at %d/%d", self.kind or "Simulation", self.position, len(self.events))
        self.cancelled = True

    def resume(self):
        """Allow stepping again after cancel(), keeping the current position."""
        self.cancelled = False

    def prepare_playback(self):
        """Continue from the cursor, or rewind first if everything was already shown."""
        if self.done:
            self.reset()
        else:
            self.resume()

    def reset(self):
        """Rewind to the first event and clear cancellation."""
        self.position = 0
        self.cancelled = False

    @property
    def revealed(self) -> Tuple[T, ...]:
        return self.events[:self.position]

    @property
    def done(self) -> bool:
        return self.position >= len(self.events)

    @property
    def progress(self) -> float:
        if not self.events:
            return 1.0
        return self.position / len(self.events)
