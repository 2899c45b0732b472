"""Test data feeders.

A feeder hands one record to every iteration. When it runs dry it returns
``None``, which the engine treats as a fatal data-exhausted condition.
"""

from __future__ import annotations

import random
from typing import Any, Iterable, Optional


class DataFeeder:
    """Feeds records to iterations in order.

    Args:
        records: Records to feed
        circular: Start over after the last record instead of running dry
        shuffle: Shuffle the records once, and again on every wrap-around
        seed: Seed for the shuffle, for reproducible runs
    """

    def __init__(
        self,
        records: Iterable[Any],
        circular: bool = False,
        shuffle: bool = False,
        seed: Optional[int] = None,
    ) -> None:
        self._records = list(records)
        self.circular = circular
        self.shuffle = shuffle
        self._random = random.Random(seed)
        self._position = 0
        if self.shuffle:
            self._random.shuffle(self._records)

    @classmethod
    def empty(cls) -> DataFeeder:
        """A circular feeder yielding an empty record every iteration."""
        return cls([{}], circular=True)

    def __len__(self) -> int:
        return len(self._records)

    def feed(self) -> Optional[Any]:
        if self._position >= len(self._records):
            if not self.circular or not self._records:
                return None
            self._position = 0
            if self.shuffle:
                self._random.shuffle(self._records)
        record = self._records[self._position]
        self._position += 1
        return record
