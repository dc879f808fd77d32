"""
Keyed index building.

Fetches the full record set of one side and maps identity key -> record in
a single pass.

Duplicate keys: when the key function is not injective over a source, the
later record replaces the earlier one (last-write-wins) and the key keeps
its first position in iteration order. This is logged as a warning, never
corrected. Pass ``strict_keys=True`` to fail with DuplicateKeyError instead.
"""

import time
from typing import Any, Callable, List

from .exceptions import DuplicateKeyError, SourceUnavailable
from .logger import get_logger
from .sources.base import RecordSource


class KeyedIndex(dict):
    """
    Mapping of identity key -> record for one side of a comparison.

    Iterates in fetch order. ``fetched`` counts records read from the source
    (larger than ``len()`` when keys repeat), ``duplicates`` lists every key
    that was seen again.
    """

    def __init__(self, side: str, source: str):
        super().__init__()
        self.side = side
        self.source = source
        self.fetched = 0
        self.duplicates: List[Any] = []


def build_index(
    source: RecordSource,
    key_fn: Callable[[Any], Any],
    side: str = "first",
    strict_keys: bool = False,
) -> KeyedIndex:
    """
    Fetch every record of a source and index it by identity key.

    Args:
        source: Collaborator exposing fetch_all()
        key_fn: Record -> hashable identity key
        side: Label used in logs and errors (e.g. "first", "second")
        strict_keys: Raise on duplicate keys instead of last-write-wins

    Returns:
        KeyedIndex owned by the caller

    Raises:
        SourceUnavailable: If the fetch fails for any reason (not retried)
        DuplicateKeyError: If strict_keys is set and a key repeats
    """
    logger = get_logger()
    source_name = getattr(source, "name", None) or repr(source)
    logger.debug("Fetching records", side=side, source=source_name)

    start_time = time.time()
    try:
        records = source.fetch_all()
    except Exception as e:
        logger.error(
            "Source fetch failed",
            side=side,
            source=source_name,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise SourceUnavailable(side, source_name, f"{type(e).__name__}: {e}") from e
    duration_ms = (time.time() - start_time) * 1000

    index = KeyedIndex(side, source_name)
    for record in records:
        key = key_fn(record)
        if key in index:
            if strict_keys:
                raise DuplicateKeyError(side, key, source_name)
            index.duplicates.append(key)
        index[key] = record
        index.fetched += 1

    if index.duplicates:
        logger.warning(
            "Duplicate identity keys, later records replaced earlier ones",
            side=side,
            source=source_name,
            duplicates=len(index.duplicates),
            sample=[repr(k) for k in index.duplicates[:5]],
        )

    logger.info(
        "Indexed records",
        side=side,
        source=source_name,
        records=index.fetched,
        keys=len(index),
        duration_ms=round(duration_ms, 1),
    )
    return index
