"""
Record shapes and comparable-field selection.

A record shape is an explicit table of named fields for one record type,
declared once at startup. Each field carries an accessor and an
``excluded_by_default`` flag for identity and not-persisted fields, which
never take part in equality. ``select_fields`` combines that table with a
caller's exclusion list into the ordered set of fields to compare.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from .exceptions import InvalidExclusion

Accessor = Callable[[Any], Any]
Names = Union[str, Iterable[str]]


class _Missing:
    """Value read from a mapping record that lacks the field."""

    _instance: Optional["_Missing"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<missing>"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


@dataclass(frozen=True)
class FieldDescriptor:
    """One named field of a record type."""

    name: str
    accessor: Accessor = field(compare=False, repr=False)
    excluded_by_default: bool = False

    def read(self, record: Any) -> Any:
        return self.accessor(record)


def _as_names(names: Optional[Names]) -> Tuple[str, ...]:
    if names is None:
        return ()
    if isinstance(names, str):
        return (names,)
    return tuple(names)


def attribute_reader(name: str) -> Accessor:
    """Accessor reading an attribute of an object record."""
    def read(record: Any) -> Any:
        return getattr(record, name)
    return read


def item_reader(name: str) -> Accessor:
    """Accessor reading a key of a mapping record; absent keys read as MISSING."""
    def read(record: Any) -> Any:
        try:
            return record[name]
        except KeyError:
            return MISSING
    return read


class RecordShape:
    """
    Ordered, immutable table of the fields of one record type.

    Build one per record type with ``of_attributes`` (objects) or
    ``of_mapping`` (dicts and other mappings), or pass descriptors directly
    for records that need custom accessors.
    """

    def __init__(self, name: str, fields: Iterable[FieldDescriptor]):
        self.name = name
        self.fields: Tuple[FieldDescriptor, ...] = tuple(fields)
        self._by_name: Dict[str, FieldDescriptor] = {}
        for descriptor in self.fields:
            if descriptor.name in self._by_name:
                raise ValueError(f"Duplicate field '{descriptor.name}' in record shape '{name}'")
            self._by_name[descriptor.name] = descriptor

    @classmethod
    def of_attributes(
        cls,
        name: str,
        fields: Names,
        identity: Optional[Names] = None,
        ignored: Optional[Names] = None,
    ) -> "RecordShape":
        """
        Declare a shape whose records expose fields as attributes.

        Args:
            name: Record type name, used in error messages
            fields: Field names in comparison order
            identity: Storage identity field(s), never compared
            ignored: Not-persisted / not-comparable field(s), never compared

        Returns:
            RecordShape
        """
        return cls._declare(name, fields, identity, ignored, attribute_reader)

    @classmethod
    def of_mapping(
        cls,
        name: str,
        fields: Names,
        identity: Optional[Names] = None,
        ignored: Optional[Names] = None,
    ) -> "RecordShape":
        """
        Declare a shape whose records are mappings (e.g. JSON documents, SQL rows).

        Same arguments as ``of_attributes``. A key absent from a record reads
        as ``MISSING``, which differs from an explicit ``None``.
        """
        return cls._declare(name, fields, identity, ignored, item_reader)

    @classmethod
    def _declare(
        cls,
        name: str,
        fields: Names,
        identity: Optional[Names],
        ignored: Optional[Names],
        reader: Callable[[str], Accessor],
    ) -> "RecordShape":
        field_names = list(_as_names(fields))
        markers = set(_as_names(identity)) | set(_as_names(ignored))
        # Marker fields not listed explicitly still belong to the shape.
        for marked in _as_names(identity) + _as_names(ignored):
            if marked not in field_names:
                field_names.append(marked)
        return cls(
            name,
            (
                FieldDescriptor(n, reader(n), excluded_by_default=n in markers)
                for n in field_names
            ),
        )

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return f"RecordShape({self.name!r}, {list(self.names)!r})"

    def field(self, name: str) -> FieldDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Field '{name}' is not on record shape '{self.name}'") from None

    def accessor(self, name: str) -> Accessor:
        return self.field(name).accessor

    def key_function(self, *names: str) -> Callable[[Any], Any]:
        """
        Build an identity-key function from one or more fields.

        One name yields the field value itself, several yield a tuple. A
        record lacking a key field raises KeyError.
        """
        if not names:
            raise ValueError("key_function needs at least one field name")
        accessors = [(n, self.accessor(n)) for n in names]

        def key(record: Any) -> Any:
            values = []
            for key_name, read in accessors:
                value = read(record)
                if value is MISSING:
                    raise KeyError(f"Record has no value for key field '{key_name}'")
                values.append(value)
            return values[0] if len(values) == 1 else tuple(values)

        return key


class ComparableFieldSet:
    """Ordered fields that take part in equality for one comparison setup."""

    def __init__(
        self,
        shape_name: str,
        fields: Iterable[FieldDescriptor],
        excluded: Iterable[str] = (),
    ):
        self.shape_name = shape_name
        self.fields: Tuple[FieldDescriptor, ...] = tuple(fields)
        self.excluded: Tuple[str, ...] = tuple(excluded)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(d.name for d in self.fields)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __repr__(self) -> str:
        return f"ComparableFieldSet({self.shape_name!r}, {list(self.names)!r})"


def select_fields(shape: RecordShape, exclude: Optional[Names] = None) -> ComparableFieldSet:
    """
    Determine the fields to compare for a record shape.

    Identity and ignored fields are always left out. Every name in
    ``exclude`` must be a field of the shape.

    Args:
        shape: Declared record shape
        exclude: Field name(s) to leave out beyond the defaults

    Returns:
        ComparableFieldSet in the shape's declared order

    Raises:
        InvalidExclusion: If an excluded name is not a field of the shape
    """
    excluded = _as_names(exclude)
    for name in excluded:
        if name not in shape:
            raise InvalidExclusion(name, shape.name)

    skip = set(excluded)
    return ComparableFieldSet(
        shape.name,
        (d for d in shape.fields if not d.excluded_by_default and d.name not in skip),
        excluded=excluded,
    )
