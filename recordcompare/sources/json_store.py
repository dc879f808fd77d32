import json
from pathlib import Path
from typing import Any, List, Optional, Union

from .base import extract_records


class JsonStoreSource:
    """Records stored in a JSON file."""

    def __init__(self, path: Union[str, Path], collection: Optional[str] = None):
        self.path = Path(path)
        self.collection = collection
        self.name = str(self.path) if collection is None else f"{self.path}:{collection}"

    def fetch_all(self) -> List[Any]:
        """
        Read every record from the file.

        An empty file holds no records. A missing file or malformed JSON
        raises, so a broken side is never mistaken for an empty one.
        """
        with self.path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
        if not content:
            return []
        return extract_records(json.loads(content), self.collection, origin=str(self.path))

    def __repr__(self) -> str:
        return f"JsonStoreSource({self.name!r})"
