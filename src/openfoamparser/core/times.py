"""
Time directory index.

A case stores one directory per written time step (``0``, ``0.1``, ``1e-05``,
...) next to non-time directories such as ``constant`` and ``system``. The
index keeps the numeric ones ordered by value and answers resolution queries.
"""

import bisect
import logging
import math
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from openfoamparser.exceptions import StructuralError
from openfoamparser.io.sources import DirectoryLister, PathLike, join_path

logger = logging.getLogger(__name__)

_TIME_NAME = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

LATEST_NAMES = ("latestTime", "latest", "last")
EARLIEST_NAMES = ("earliest", "first", "startTime")


@dataclass(frozen=True, order=True)
class TimeEntry:
    """One time directory: numeric value, directory name and its key."""
    value: float
    name: str
    path: str


def parse_time_name(name: str) -> Optional[float]:
    """Numeric value of a directory name, None for non-time directories."""
    if not _TIME_NAME.match(name):
        return None
    value = float(name)
    if not math.isfinite(value):
        logger.warning(f"Skipping time directory with non-finite value: {name}")
        return None
    return value


class TimeIndex:
    """
    Read-only, value-ordered sequence of time directories.

    Equal values from distinct names (``1`` and ``1.0``) are kept as separate
    entries ordered by name. Re-scanning returns a new index.
    """

    def __init__(self, entries: Sequence[TimeEntry], root: Optional[PathLike] = None,
                 lister: Optional[DirectoryLister] = None):
        self._entries: Tuple[TimeEntry, ...] = tuple(sorted(entries))
        self._values = [entry.value for entry in self._entries]
        self.root = root
        self.lister = lister

    @classmethod
    def scan(cls, root: PathLike, lister: DirectoryLister) -> 'TimeIndex':
        """Build the index from the entries of a case root (OSError propagates)."""
        entries = []
        for name in lister.list_entries(root):
            value = parse_time_name(name)
            if value is None:
                continue
            entries.append(TimeEntry(value, name, join_path(root, name)))

        index = cls(entries, root, lister)
        logger.info(f"Found {len(index)} time directories in {root}")
        return index

    def rescan(self) -> 'TimeIndex':
        if self.root is None or self.lister is None:
            raise StructuralError("time index was not built from a directory")
        return TimeIndex.scan(self.root, self.lister)

    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TimeEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> TimeEntry:
        return self._entries[index]

    @property
    def entries(self) -> Tuple[TimeEntry, ...]:
        return self._entries

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self._entries]

    @property
    def values(self) -> List[float]:
        return list(self._values)

    def _require_entries(self, query: str) -> None:
        if not self._entries:
            raise StructuralError(f"cannot resolve {query}: no time directories", source=self._source())

    def _source(self) -> Optional[str]:
        return str(self.root) if self.root is not None else None

    def latest(self) -> TimeEntry:
        self._require_entries("latest time")
        return self._entries[-1]

    def earliest(self) -> TimeEntry:
        self._require_entries("earliest time")
        return self._entries[0]

    def nearest_below(self, time: float) -> TimeEntry:
        """Exact match or the largest time below ``time``."""
        self._require_entries(f"time at or below {time}")
        index = bisect.bisect_right(self._values, time) - 1
        if index < 0:
            raise StructuralError(f"no time at or below {time} (earliest is {self._entries[0].name})",
                                  source=self._source())
        return self._entries[index]

    def nearest_above(self, time: float) -> TimeEntry:
        """Exact match or the smallest time above ``time``."""
        self._require_entries(f"time at or above {time}")
        index = bisect.bisect_left(self._values, time)
        if index >= len(self._entries):
            raise StructuralError(f"no time at or above {time} (latest is {self._entries[-1].name})",
                                  source=self._source())
        return self._entries[index]

    def nearest(self, time: float) -> TimeEntry:
        """Closest time on either side; ties go to the lower one."""
        self._require_entries(f"time nearest to {time}")
        index = bisect.bisect_right(self._values, time)
        if index == 0:
            return self._entries[0]
        below = self._entries[index - 1]
        if index == len(self._entries):
            return below
        above = self._entries[index]
        return above if above.value - time < time - below.value else below

    def find(self, name: str) -> Optional[TimeEntry]:
        """Entry with exactly this directory name."""
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def resolve(self, request: Union[str, float, int]) -> TimeEntry:
        """
        Resolve a user time request.

        Accepts ``latestTime``, ``earliest``/``first``, a directory name or a
        number matched exactly by value.
        """
        if isinstance(request, str):
            if request in LATEST_NAMES:
                return self.latest()
            if request in EARLIEST_NAMES:
                return self.earliest()
            entry = self.find(request)
            if entry is not None:
                return entry
            try:
                request = float(request)
            except ValueError:
                raise StructuralError(f"no time directory named '{request}'", source=self._source())

        self._require_entries(f"time {request}")
        index = bisect.bisect_left(self._values, float(request))
        if index < len(self._entries) and self._values[index] == float(request):
            return self._entries[index]
        raise StructuralError(f"no time directory for time {request}", source=self._source())

    def __repr__(self) -> str:
        return f"TimeIndex({self.names})"
