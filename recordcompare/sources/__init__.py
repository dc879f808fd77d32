"""Data source collaborators: anything exposing ``fetch_all()``."""

from typing import Optional

from .base import ListSource, RecordSource, extract_records
from .http import HttpJsonSource
from .json_store import JsonStoreSource
from .sql import SqlModelSource, SqlTableSource, shape_for_model, shape_for_table


def open_source(uri: str, collection: Optional[str] = None) -> RecordSource:
    """
    Pick a source from a location string.

    - ``http://`` / ``https://`` URL -> HttpJsonSource
    - ``<sqlalchemy-url>#<table>`` (e.g. ``sqlite:///data/jobs.db#jobs``) -> SqlTableSource
    - anything else is a file path -> JsonStoreSource
    """
    if uri.startswith(("http://", "https://")):
        return HttpJsonSource(uri, collection=collection)
    if "://" in uri:
        url, _, table = uri.partition("#")
        if not table:
            raise ValueError(f"Database location needs a '#table' suffix: {uri}")
        schema = None
        if "." in table:
            schema, table = table.split(".", 1)
        return SqlTableSource(url, table, schema=schema)
    return JsonStoreSource(uri, collection=collection)


__all__ = [
    "RecordSource",
    "ListSource",
    "JsonStoreSource",
    "SqlTableSource",
    "SqlModelSource",
    "HttpJsonSource",
    "extract_records",
    "open_source",
    "shape_for_model",
    "shape_for_table",
]
