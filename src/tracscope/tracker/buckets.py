"""Rolling per-minute bucket index for sparkline series."""

from __future__ import annotations

from collections import deque
from typing import Iterator

from tracscope.models.records import MinuteBucket

MINUTE_MS = 60_000
ROLLING_MINUTES = 60


def minute_start(now: int) -> int:
    """Truncate an epoch-ms timestamp to the start of its minute."""
    return (now // MINUTE_MS) * MINUTE_MS


class RollingBucketIndex:
    """The most recent ``capacity`` minute buckets, oldest first.

    Only minutes that saw an event get a bucket: a quiet hour is not
    backfilled with zero buckets, so consumers should read gaps as "no data".
    """

    def __init__(self, capacity: int = ROLLING_MINUTES) -> None:
        self._buckets: deque[MinuteBucket] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._buckets)

    def __iter__(self) -> Iterator[MinuteBucket]:
        return iter(self._buckets)

    def current_bucket(self, now: int) -> MinuteBucket:
        """Bucket for the minute containing ``now``, creating it if needed."""
        start = minute_start(now)
        if self._buckets:
            last = self._buckets[-1]
            # A clock stepping backwards keeps writing to the newest bucket
            if last.bucket_start >= start:
                return last
        bucket = MinuteBucket(bucket_start=start)
        self._buckets.append(bucket)  # deque evicts the oldest past capacity
        return bucket
