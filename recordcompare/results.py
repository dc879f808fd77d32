from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class DifferingPair:
    """Records of both sides sharing a key whose comparable fields differ."""

    key: Any
    first: Any
    second: Any
    fields: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[Any]:
        # Unpacks as (first, second).
        return iter((self.first, self.second))


@dataclass(frozen=True)
class ResultSummary:
    only_in_first: int
    only_in_second: int
    differing: int

    @property
    def match(self) -> bool:
        return not (self.only_in_first or self.only_in_second or self.differing)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match": self.match,
            "only_in_first": self.only_in_first,
            "only_in_second": self.only_in_second,
            "differing": self.differing,
        }


def render_record(record: Any) -> Any:
    """Plain-data view of a record for JSON output."""
    if isinstance(record, Mapping):
        return dict(record)
    if hasattr(record, "__dict__"):
        return {k: v for k, v in vars(record).items() if not k.startswith("_")}
    return record


@dataclass(frozen=True)
class ResultSet:
    """
    Outcome of one comparison run.

    Buckets are tuples in the iteration order of the index each record came
    from. ``match`` is true iff all three are empty.
    """

    only_in_first: Tuple[Any, ...] = ()
    only_in_second: Tuple[Any, ...] = ()
    differing: Tuple[DifferingPair, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "only_in_first", tuple(self.only_in_first))
        object.__setattr__(self, "only_in_second", tuple(self.only_in_second))
        object.__setattr__(self, "differing", tuple(self.differing))

    @property
    def match(self) -> bool:
        return not (self.only_in_first or self.only_in_second or self.differing)

    def summary(self) -> ResultSummary:
        return ResultSummary(
            only_in_first=len(self.only_in_first),
            only_in_second=len(self.only_in_second),
            differing=len(self.differing),
        )

    def to_dict(self, render: Optional[Callable[[Any], Any]] = None) -> Dict[str, Any]:
        """
        JSON-ready view of the result.

        Args:
            render: Record -> plain data (default: render_record)
        """
        render = render or render_record
        payload = self.summary().to_dict()
        payload["records"] = {
            "only_in_first": [render(r) for r in self.only_in_first],
            "only_in_second": [render(r) for r in self.only_in_second],
            "differing": [
                {
                    "key": pair.key,
                    "fields": list(pair.fields),
                    "first": render(pair.first),
                    "second": render(pair.second),
                }
                for pair in self.differing
            ],
        }
        return payload
