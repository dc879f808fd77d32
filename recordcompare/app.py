import argparse
import json
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

from sqlalchemy.exc import ArgumentError

from . import __version__
from .env import load_env, load_settings
from .exceptions import CompareError
from .logger import reset_logger
from .fields import RecordShape
from .orchestrator import CompareConfig, run
from .report import format_report
from .sources import RecordSource, SqlTableSource, open_source


def _split(value: Optional[str]) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()] if value else []


def _fail(message: str) -> NoReturn:
    print(f"❌ {message}", file=sys.stderr)
    raise SystemExit(2)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _resolve_shape(args: argparse.Namespace, first: RecordSource, second: RecordSource) -> RecordShape:
    """Shape from --fields, else from the first database table source."""
    if args.fields:
        return RecordShape.of_mapping(
            args.shape_name,
            _split(args.fields),
            identity=_split(args.identity),
            ignored=_split(args.ignore),
        )
    for source in (first, second):
        if isinstance(source, SqlTableSource):
            try:
                return source.shape(ignored=_split(args.ignore))
            except Exception as e:
                _fail(f"Could not read table layout from {source.name}: {e}")
    _fail("Record fields unknown: pass --fields, or use a database table (URL#table) as a source")


def cmd_compare(args: argparse.Namespace) -> None:
    try:
        settings = load_settings()
    except ValueError as e:
        _fail(str(e))
    try:
        first = open_source(args.first, collection=args.collection)
        second = open_source(args.second, collection=args.collection)
    except (ValueError, ArgumentError) as e:
        _fail(str(e))

    shape = _resolve_shape(args, first, second)
    key_names = _split(args.key)
    if not key_names:
        _fail("--key needs at least one field name")
    try:
        key = shape.key_function(*key_names)
    except KeyError as e:
        _fail(str(e.args[0]) if e.args else str(e))

    config = CompareConfig(
        first=first,
        second=second,
        shape=shape,
        key=key,
        exclude=tuple(_split(args.exclude)),
        strict_keys=args.strict_keys,
        fetch_timeout=args.timeout if args.timeout is not None else settings.fetch_timeout,
    )

    print(f"Comparing {first.name} with {second.name}...")
    try:
        result = run(config)
    except CompareError as e:
        _fail(str(e))
    except KeyError as e:
        # Raised by the key function on a record lacking a key field.
        _fail(str(e.args[0]) if e.args else str(e))
    except TypeError as e:
        # Records that are not objects, or key values that cannot be hashed.
        _fail(f"Could not read identity keys: {e}")

    print(format_report(result, shape=shape, key=key, limit=args.limit))

    if args.output_json:
        output = Path(args.output_json)
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, sort_keys=True, default=str, ensure_ascii=False)

    if not result.match:
        raise SystemExit(1)


def main(argv: Optional[List[str]] = None):
    load_env()
    # Loggers created at import time predate .env
    reset_logger()
    parser = argparse.ArgumentParser(prog="recordcompare", description="Compare two record collections")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    cmp = subparsers.add_parser("compare", help="Compare the records of two sources")
    cmp.add_argument("--first", required=True, help="First source: JSON file, http(s) URL or <db-url>#<table>")
    cmp.add_argument("--second", required=True, help="Second source: JSON file, http(s) URL or <db-url>#<table>")
    cmp.add_argument("--key", required=True, help="Comma-separated identity key field(s)")
    cmp.add_argument("--fields", help="Comma-separated record fields (required unless a source is a database table)")
    cmp.add_argument("--shape-name", default="record", help="Record type name used in messages (default: record)")
    cmp.add_argument("--identity", help="Comma-separated storage identity field(s), never compared (e.g. _id)")
    cmp.add_argument("--ignore", help="Comma-separated not-comparable field(s)")
    cmp.add_argument("--exclude", help="Comma-separated fields to leave out of this comparison")
    cmp.add_argument("--collection", help="Key holding the records inside a JSON document")
    cmp.add_argument("--strict-keys", action="store_true", help="Fail on duplicate identity keys instead of keeping the last record")
    cmp.add_argument("--timeout", type=float, help="Seconds to wait for both fetches (default: RECORDCOMPARE_FETCH_TIMEOUT)")
    cmp.add_argument("--limit", type=_non_negative_int, default=5, help="Records listed per section of the report (default 5)")
    cmp.add_argument("--output-json", help="Write the full result as JSON to this path")
    cmp.set_defaults(func=cmd_compare)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
