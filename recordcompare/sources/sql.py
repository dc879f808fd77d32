"""
SQL data sources backed by SQLAlchemy.

``SqlTableSource`` reflects a table and returns rows as dicts;
``SqlModelSource`` returns instances of a declarative model. Both derive a
record shape from column metadata: primary-key columns are the identity
marker, and columns declared with ``info={"compare": False}`` are the
not-comparable marker.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import Column, MetaData, Table, create_engine, inspect, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from ..env import load_settings
from ..fields import RecordShape
from ..logger import get_logger
from ..retry import exponential_backoff, is_transient_error

COMPARE_INFO_KEY = "compare"


def _is_not_comparable(column: Column) -> bool:
    return column.info.get(COMPARE_INFO_KEY, True) is False


def _display_url(url: Union[str, Engine]) -> str:
    if isinstance(url, Engine):
        return url.url.render_as_string(hide_password=True)
    return make_url(url).render_as_string(hide_password=True)


def shape_for_table(
    table: Table,
    name: Optional[str] = None,
    ignored: Optional[Iterable[str]] = None,
) -> RecordShape:
    """
    Build a mapping record shape from table columns.

    Args:
        table: SQLAlchemy table (declared or reflected)
        name: Shape name (default: table name)
        ignored: Extra column names to mark as not comparable

    Returns:
        RecordShape in column order
    """
    identity = [c.name for c in table.columns if c.primary_key]
    not_compared = [c.name for c in table.columns if _is_not_comparable(c) and not c.primary_key]
    not_compared.extend(n for n in (ignored or ()) if n not in not_compared)
    unknown = [n for n in not_compared if n not in table.columns]
    if unknown:
        raise ValueError(f"Columns {unknown} are not on table '{table.name}'")
    return RecordShape.of_mapping(
        name or table.name,
        [c.name for c in table.columns],
        identity=identity,
        ignored=not_compared,
    )


def shape_for_model(model: Any) -> RecordShape:
    """
    Build an attribute record shape from a declarative model.

    Fields are the model's column attributes in mapper order.
    """
    mapper = inspect(model)
    names: List[str] = []
    identity: List[str] = []
    ignored: List[str] = []
    for attr in mapper.column_attrs:
        column = attr.columns[0]
        names.append(attr.key)
        if getattr(column, "primary_key", False):
            identity.append(attr.key)
        elif isinstance(column, Column) and _is_not_comparable(column):
            ignored.append(attr.key)
    return RecordShape.of_attributes(model.__name__, names, identity=identity, ignored=ignored)


class _SqlSource:
    """Engine handling and retry policy shared by the SQL sources."""

    def __init__(
        self,
        url: Union[str, Engine],
        max_retries: Optional[int] = None,
        base_delay: float = 1.0,
    ):
        self.url = url
        if max_retries is None:
            max_retries = load_settings().max_retries
        self._fetch = exponential_backoff(
            max_retries=max_retries,
            base_delay=base_delay,
            exceptions=(OperationalError,),
            retry_if=is_transient_error,
            on_retry=self._log_retry,
        )(self._read)

    def _log_retry(self, attempt: int, exc: Exception, delay: float):
        get_logger().warning(
            "Transient database error, retrying",
            source=self.name,
            attempt=attempt,
            delay=delay,
            error=str(exc),
        )

    def _engine(self) -> Engine:
        if isinstance(self.url, Engine):
            return self.url
        return create_engine(self.url)

    def _release(self, engine: Engine) -> None:
        if engine is not self.url:
            engine.dispose()

    def fetch_all(self) -> List[Any]:
        return self._fetch()

    def _read(self) -> List[Any]:
        raise NotImplementedError


class SqlTableSource(_SqlSource):
    """Rows of one database table, each returned as a dict."""

    def __init__(
        self,
        url: Union[str, Engine],
        table: str,
        schema: Optional[str] = None,
        max_retries: Optional[int] = None,
        base_delay: float = 1.0,
    ):
        self.table = table
        self.schema = schema
        qualified = f"{schema}.{table}" if schema else table
        self.name = f"{_display_url(url)}#{qualified}"
        super().__init__(url, max_retries=max_retries, base_delay=base_delay)

    def _reflect(self, engine: Engine) -> Table:
        return Table(self.table, MetaData(), schema=self.schema, autoload_with=engine)

    def shape(self, ignored: Optional[Iterable[str]] = None) -> RecordShape:
        """Reflect the table and build its record shape."""
        engine = self._engine()
        try:
            return shape_for_table(self._reflect(engine), ignored=ignored)
        finally:
            self._release(engine)

    def _read(self) -> List[Dict[str, Any]]:
        engine = self._engine()
        try:
            table = self._reflect(engine)
            with engine.connect() as conn:
                return [dict(row) for row in conn.execute(select(table)).mappings()]
        finally:
            self._release(engine)

    def __repr__(self) -> str:
        return f"SqlTableSource({self.name!r})"


class SqlModelSource(_SqlSource):
    """All instances of a declarative model."""

    def __init__(
        self,
        url: Union[str, Engine],
        model: Any,
        max_retries: Optional[int] = None,
        base_delay: float = 1.0,
    ):
        self.model = model
        self.name = f"{_display_url(url)}#{model.__tablename__}"
        super().__init__(url, max_retries=max_retries, base_delay=base_delay)

    def shape(self) -> RecordShape:
        return shape_for_model(self.model)

    def _read(self) -> List[Any]:
        engine = self._engine()
        Session = sessionmaker(bind=engine)
        session = Session()
        try:
            return session.query(self.model).all()
        finally:
            session.close()
            self._release(engine)

    def __repr__(self) -> str:
        return f"SqlModelSource({self.name!r})"
