"""
Three-way classification of two keyed indices.

Comparison is shallow: each comparable field is checked with value
equality, so a nested document or list counts as different when its whole
value differs. No diffing happens inside nested values.

Numbers compare by value across types, so 1 equals 1.0. Booleans only
equal booleans: True and 1 differ.
"""

import math
from typing import Any, List, Mapping, Tuple

from .fields import ComparableFieldSet
from .results import DifferingPair, ResultSet


def values_equal(a: Any, b: Any) -> bool:
    """
    Value equality of two field values.

    The same object always equals itself, and two float NaNs are equal, so a
    record never differs from an identical copy of itself. A bool never
    equals a non-bool.
    """
    if a is b:
        return True
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    return bool(a == b)


def differing_fields(first: Any, second: Any, fields: ComparableFieldSet) -> Tuple[str, ...]:
    """Names of the comparable fields whose values differ, in field order."""
    return tuple(
        descriptor.name
        for descriptor in fields
        if not values_equal(descriptor.read(first), descriptor.read(second))
    )


def compare(
    first: Mapping[Any, Any],
    second: Mapping[Any, Any],
    fields: ComparableFieldSet,
) -> ResultSet:
    """
    Classify the records of two indices.

    Keys only in ``first`` land in ``only_in_first``, keys only in ``second``
    in ``only_in_second``, and shared keys whose records differ on any
    comparable field in ``differing``. Shared keys are examined once.

    Args:
        first: Keyed index of the first side
        second: Keyed index of the second side
        fields: Fields taking part in equality

    Returns:
        ResultSet with buckets in each index's iteration order
    """
    only_in_first: List[Any] = []
    differing: List[DifferingPair] = []

    for key, record in first.items():
        if key not in second:
            only_in_first.append(record)
            continue
        other = second[key]
        changed = differing_fields(record, other, fields)
        if changed:
            differing.append(DifferingPair(key=key, first=record, second=other, fields=changed))

    only_in_second = [record for key, record in second.items() if key not in first]

    return ResultSet(
        only_in_first=only_in_first,
        only_in_second=only_in_second,
        differing=differing,
    )
