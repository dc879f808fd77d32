"""
recordcompare - compare two collections of records.

Reports records found on only one side and records present on both sides
whose comparable fields differ.

    shape = RecordShape.of_mapping("item", ["name", "number", "date"], identity="_id")
    result = compare_sources(first, second, shape, key=shape.key_function("name"))
    result.match
"""

__version__ = "0.1.0"

from .engine import compare, differing_fields, values_equal
from .exceptions import CompareError, DuplicateKeyError, InvalidExclusion, SourceUnavailable
from .fields import MISSING, ComparableFieldSet, FieldDescriptor, RecordShape, select_fields
from .index import KeyedIndex, build_index
from .orchestrator import CompareConfig, compare_sources, run
from .results import DifferingPair, ResultSet, ResultSummary

__all__ = [
    "__version__",
    "MISSING",
    "FieldDescriptor",
    "RecordShape",
    "ComparableFieldSet",
    "select_fields",
    "KeyedIndex",
    "build_index",
    "compare",
    "differing_fields",
    "values_equal",
    "DifferingPair",
    "ResultSet",
    "ResultSummary",
    "CompareConfig",
    "run",
    "compare_sources",
    "CompareError",
    "InvalidExclusion",
    "SourceUnavailable",
    "DuplicateKeyError",
]
