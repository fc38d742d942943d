"""
Weekly shift schedule for the lift-truck fleet.

The schedule is a circular array of 168 hour cells (7 days x 24 hours).
Each cell references the Shift working during that hour, or None when the
trucks are idle. The grid is built from a list of configuration tokens of
the form

    "block", d1, d2, ..., "shift", start, duration, trucks, "shift", ...

where d1, d2, ... are the days covered by the block (1..7, Sunday = 1),
start is the hour the shift begins, duration is its length in hours and
trucks is the number of trucks working. Later declarations overwrite
earlier ones wherever they overlap.

Malformed declarations are logged and skipped; building a schedule never
raises.
"""

import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from .data_structures import Shift
from .utils import HOURS_DAY, HOURS_WEEK, DAYS_WEEK, next_index

logger = logging.getLogger(__name__)


# Monday through Friday, three shifts per day
DEFAULT_SHIFT_DATA = [
    "block", "2", "3", "4", "5", "6",
    "shift", "8", "8", "8",
    "shift", "16", "8", "6",
    "shift", "0", "8", "3",
]

BLOCK_TOKEN = "block"
SHIFT_TOKEN = "shift"


class ScheduleGrid:
    """
    Circular hour-of-week schedule of shifts.

    Attributes:
        name: Owner name used in log messages
        cells: 168 entries, each a Shift or None (idle)
        shift_data: Tokens that produced the current grid contents

    Examples:
        >>> grid = ScheduleGrid.from_tokens(
        ...     ["block", "2", "3", "shift", "8", "8", "4"])
        >>> grid.shift_at(8 + 24)
        Shift(8,8,4)
        >>> grid.shift_at(0) is None
        True
    """

    def __init__(self, name: str = "lift-trucks"):
        self.name = name
        self.cells: List[Optional[Shift]] = [None] * HOURS_WEEK
        self.shift_data: List[str] = []

    @classmethod
    def from_tokens(
        cls,
        tokens: Optional[Sequence[str]],
        name: str = "lift-trucks"
    ) -> 'ScheduleGrid':
        """
        Build a grid from declaration tokens, falling back to the default
        schedule when nothing usable is declared.

        Args:
            tokens: Declaration tokens, or None
            name: Owner name used in log messages

        Returns:
            Fully populated ScheduleGrid
        """
        grid = cls(name)
        if tokens:
            grid.set_shift_data(tokens)
        grid.ensure_shifts()
        return grid

    def __len__(self) -> int:
        return len(self.cells)

    def __getitem__(self, index: int) -> Optional[Shift]:
        return self.cells[index]

    def __iter__(self) -> Iterator[Optional[Shift]]:
        return iter(self.cells)

    def shift_at(self, index: int) -> Optional[Shift]:
        """Shift working during the hour at ``index`` (None when idle)."""
        return self.cells[index % HOURS_WEEK]

    def is_empty(self) -> bool:
        return all(cell is None for cell in self.cells)

    def ensure_shifts(self) -> None:
        """Substitute the default schedule if no cell is populated."""
        if not self.is_empty():
            return
        logger.info(f"{self.name}: no shifts configured, using default schedule")
        self.set_shift_data(DEFAULT_SHIFT_DATA)

    def set_shift_data(self, tokens: Sequence[str]) -> None:
        """
        Replay shift declarations into the grid.

        The token stream is read with a two-state tokenizer: after "block"
        numbers are collected as days, after "shift" as shift parameters.
        A shift is completed when the next "shift" or "block" header or the
        end of the stream is reached.

        Args:
            tokens: Declaration tokens (strings or integers)
        """
        self.shift_data = [str(t) for t in tokens]

        in_block = False
        block_data: List[int] = []
        shift_data: List[int] = []

        for raw in self.shift_data:
            token = raw.strip()
            if token == BLOCK_TOKEN:
                if shift_data:
                    self._finish_shift(block_data, shift_data)
                    shift_data = []
                block_data = []
                in_block = True
            elif token == SHIFT_TOKEN:
                if shift_data:
                    self._finish_shift(block_data, shift_data)
                    shift_data = []
                in_block = False
            else:
                try:
                    value = int(token)
                except ValueError:
                    logger.error(
                        f"Config error for {self.name}: bad numeric token {token!r}"
                    )
                    continue
                if in_block:
                    block_data.append(value)
                else:
                    shift_data.append(value)

        if shift_data:
            self._finish_shift(block_data, shift_data)

    def _finish_shift(self, block_data: List[int], shift_data: List[int]) -> None:
        if not block_data:
            logger.error(
                f"Config error for {self.name}: empty block for shift {shift_data}"
            )
            return
        self.add_shift(shift_data, block_data)

    def add_shift(
        self,
        shift_data: Sequence[int],
        block_data: Sequence[int]
    ) -> Optional[Shift]:
        """
        Validate one shift declaration and write it into the grid.

        Args:
            shift_data: [start, duration, trucks]
            block_data: Days of week covered (1..7, Sunday = 1)

        Returns:
            The new Shift, or None if the declaration was rejected
        """
        if len(shift_data) < 3:
            logger.error(f"Bad shift spec for {self.name}: {list(shift_data)}")
            return None
        if not self.valid_block(block_data):
            logger.error(f"Bad block data for {self.name}: {list(block_data)}")
            return None

        start, duration, trucks = shift_data[0], shift_data[1], shift_data[2]
        if not 0 <= start < HOURS_DAY:
            logger.error(f"Bad shift start time {start} for {self.name}")
            return None
        if not 1 <= duration <= HOURS_DAY:
            logger.error(f"Bad shift duration {duration} for {self.name}")
            return None
        if trucks < 0:
            logger.error(f"Negative shift truck count {trucks} for {self.name}")
            return None

        shift = Shift(start=start, duration=duration, trucks=trucks)

        # Overlaps are allowed; the later declaration wins
        for day in block_data:
            for hour in range(start, start + duration):
                index = (hour + (day - 1) * HOURS_DAY) % HOURS_WEEK
                self.cells[index] = shift

        logger.debug(f"{self.name}: added {shift} on days {list(block_data)}")
        return shift

    @staticmethod
    def valid_block(block_data: Sequence[int]) -> bool:
        """A valid block is a non-empty list of days in 1..7."""
        if not block_data:
            return False
        return all(1 <= day <= DAYS_WEEK for day in block_data)

    def segments(self) -> List[Tuple[int, int, Optional[Shift]]]:
        """
        Run-length compression of the grid, starting at index 0.

        Runs are not merged across the 167 -> 0 wraparound.

        Returns:
            List of (start_index, length, shift) tuples
        """
        runs: List[Tuple[int, int, Optional[Shift]]] = []
        run_start = 0
        for index in range(1, HOURS_WEEK + 1):
            if index == HOURS_WEEK or self.cells[index] != self.cells[run_start]:
                runs.append((run_start, index - run_start, self.cells[run_start]))
                run_start = index
        return runs

    def truck_counts(self) -> List[int]:
        """Number of working trucks in each hour of the week."""
        return [cell.trucks if cell else 0 for cell in self.cells]

    def find_transition(self, index: int) -> Optional[int]:
        """
        First index after ``index`` whose cell differs from it.

        Returns:
            Grid index of the next transition, or None if the whole week
            holds the same value
        """
        current = self.cells[index]
        probe = next_index(index)
        for _ in range(HOURS_WEEK - 1):
            if self.cells[probe] != current:
                return probe
            probe = next_index(probe)
        return None

    def __repr__(self) -> str:
        shifts = {cell for cell in self.cells if cell is not None}
        return (f"ScheduleGrid({self.name}: {len(shifts)} shifts, "
                f"{sum(1 for c in self.cells if c is not None)} working hours)")
