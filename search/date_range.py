"""
Inclusive calendar date ranges and their equal split across workers.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, List, Optional

from search.exceptions import ConfigurationError

DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class DateRange:
    """Inclusive span of calendar dates (start <= end)."""
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ConfigurationError("Starting date must be before ending date")

    @property
    def length(self) -> int:
        """Number of days in the range, both ends included."""
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        """Iterate every date in the range in ascending order."""
        for offset in range(self.length):
            yield self.start + timedelta(days=offset)

    def partition(self, k: int) -> List[Optional["DateRange"]]:
        """
        Split the range into k contiguous sub-ranges.

        The first ``length % k`` sub-ranges get one extra day. When k exceeds
        the number of days, the trailing entries are None (no work).

        Args:
            k: Number of partitions, at least 1

        Returns:
            List of exactly k entries, ascending and non-overlapping
        """
        if k < 1:
            raise ConfigurationError("Number of threads must be at least 1")

        total = self.length
        base, remainder = divmod(total, k)

        partitions: List[Optional[DateRange]] = []
        offset = 0
        for i in range(k):
            size = base + (1 if i < remainder else 0)
            if size == 0:
                partitions.append(None)
                continue
            # Offsets from start never step past end, which may be date.max
            start = self.start + timedelta(days=offset)
            partitions.append(DateRange(start, start + timedelta(days=size - 1)))
            offset += size

        return partitions

    def __str__(self) -> str:
        return f"{self.start.strftime(DATE_FORMAT)} to {self.end.strftime(DATE_FORMAT)}"
