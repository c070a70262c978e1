from collections.abc import Sequence
from typing import TypeVar

from batchbridge.errors import ConfigurationError


T = TypeVar("T")


def split_into_batches(records: Sequence[T], size: int) -> list[list[T]]:
    # bool is an int subclass; reject it along with non-positive sizes.
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ConfigurationError(f"batch size must be a positive integer, got {size!r}")

    return [list(records[start : start + size]) for start in range(0, len(records), size)]
