"""Human-readable rendering of a comparison result."""

from typing import Any, Callable, List, Optional, Sequence, Tuple

from .fields import RecordShape
from .results import ResultSet


def _more(lines: List[str], total: int, limit: int) -> None:
    if total > limit:
        lines.append(f"   ... and {total - limit} more")


def format_report(
    result: ResultSet,
    shape: Optional[RecordShape] = None,
    key: Optional[Callable[[Any], Any]] = None,
    limit: int = 5,
    labels: Tuple[str, str] = ("first", "second"),
) -> str:
    """
    Render a result the way a migration check prints it.

    Args:
        result: Comparison result
        shape: Record shape, used to show differing field values
        key: Identity-key function, used to name one-sided records
        limit: Records listed per bucket
        labels: Names of the two sides

    Returns:
        Multi-line report text
    """
    first_label, second_label = labels
    summary = result.summary()
    lines: List[str] = []

    def describe(record: Any) -> str:
        return repr(key(record)) if key is not None else repr(record)

    buckets: Sequence[Tuple[str, Tuple[Any, ...]]] = (
        (f"ONLY IN {first_label.upper()}", result.only_in_first),
        (f"ONLY IN {second_label.upper()}", result.only_in_second),
    )
    for title, records in buckets:
        if not records:
            continue
        lines.append(f"❌ {title}: {len(records)} records")
        for record in records[:limit]:
            lines.append(f"   - {describe(record)}")
        _more(lines, len(records), limit)

    if result.differing:
        lines.append(f"❌ DATA MISMATCHES: {summary.differing} records differ")
        for pair in result.differing[:limit]:
            lines.append(f"   - {pair.key!r}")
            for name in pair.fields:
                if shape is not None and name in shape:
                    read = shape.accessor(name)
                    lines.append(
                        f"     {name}: {first_label}={read(pair.first)!r} vs {second_label}={read(pair.second)!r}"
                    )
                else:
                    lines.append(f"     {name}")
        _more(lines, summary.differing, limit)

    if result.match:
        lines.append("✅ Sources match")
        lines.append("   - Same identity keys on both sides")
        lines.append("   - All comparable fields equal")
    else:
        lines.append(
            f"Summary: {summary.only_in_first} only in {first_label}, "
            f"{summary.only_in_second} only in {second_label}, "
            f"{summary.differing} differing"
        )

    return "\n".join(lines)
