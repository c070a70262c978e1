import math

import pytest

from batchbridge.batching import split_into_batches
from batchbridge.errors import ConfigurationError


@pytest.mark.parametrize(("count", "size"), [(1, 1), (7, 3), (100, 100), (250, 100), (301, 50), (5, 10)])
def test_split_covers_every_record_in_order(count: int, size: int) -> None:
    records = list(range(count))

    batches = split_into_batches(records, size)

    assert len(batches) == math.ceil(count / size)
    assert sum(len(batch) for batch in batches) == count
    assert [item for batch in batches for item in batch] == records
    assert all(0 < len(batch) <= size for batch in batches)


def test_last_batch_holds_the_remainder() -> None:
    batches = split_into_batches(list(range(250)), 100)

    assert [len(batch) for batch in batches] == [100, 100, 50]


def test_empty_input_yields_no_batches() -> None:
    assert split_into_batches([], 100) == []


@pytest.mark.parametrize("size", [0, -1, True, 2.5])
def test_invalid_batch_size_is_a_configuration_error(size) -> None:
    with pytest.raises(ConfigurationError):
        split_into_batches([1, 2, 3], size)
