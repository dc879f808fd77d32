"""Data source protocol and helpers shared by the concrete sources."""

from typing import Any, Iterable, List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class RecordSource(Protocol):
    """
    Anything that can return the full record set of one side.

    Paging, retries and connection handling are the source's concern; the
    comparison core only calls ``fetch_all`` once per run.
    """

    name: str

    def fetch_all(self) -> Sequence[Any]:
        ...


class ListSource:
    """Records already held in memory."""

    def __init__(self, records: Iterable[Any], name: str = "memory"):
        self.records = list(records)
        self.name = name

    def fetch_all(self) -> List[Any]:
        return list(self.records)

    def __repr__(self) -> str:
        return f"ListSource({self.name!r}, {len(self.records)} records)"


def extract_records(payload: Any, collection: Optional[str] = None, origin: str = "payload") -> List[Any]:
    """
    Pull the record list out of a decoded JSON document.

    Without ``collection`` the document itself must be a list. With it, the
    document must be an object whose ``collection`` entry is either a list of
    records or a mapping of id -> record (the values are the records).

    Raises:
        ValueError: If the document does not have that layout
    """
    if collection is not None:
        if not isinstance(payload, dict) or collection not in payload:
            raise ValueError(f"{origin} has no '{collection}' collection")
        payload = payload[collection]
        if isinstance(payload, dict):
            return list(payload.values())

    if isinstance(payload, list):
        return list(payload)

    if collection is None and isinstance(payload, dict):
        raise ValueError(f"{origin} holds an object; name the collection to read from it")
    raise ValueError(f"{origin} does not hold a list of records")
