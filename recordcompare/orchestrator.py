"""
Comparison runs.

A run selects the comparable fields, fetches and indexes both sides
concurrently, waits for both, then classifies. Any failure on either side
aborts the run and no result is produced.
"""

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union

from .engine import compare
from .exceptions import SourceUnavailable
from .fields import RecordShape, select_fields
from .index import KeyedIndex, build_index
from .logger import StructuredLogger, get_logger
from .results import ResultSet
from .sources.base import RecordSource


@dataclass(frozen=True)
class CompareConfig:
    """
    Everything one comparison run needs.

    Both sources hold records of the same shape. ``key`` extracts the
    identity key on both sides unless ``second_key`` overrides it for the
    second side.
    """

    first: RecordSource
    second: RecordSource
    shape: RecordShape
    key: Callable[[Any], Any]
    exclude: Tuple[str, ...] = ()
    second_key: Optional[Callable[[Any], Any]] = None
    strict_keys: bool = False
    fetch_timeout: Optional[float] = None
    first_label: str = "first"
    second_label: str = "second"

    def __post_init__(self):
        for label, source in ((self.first_label, self.first), (self.second_label, self.second)):
            if not isinstance(source, RecordSource):
                raise TypeError(
                    f"{label} source must have a name and fetch_all(), got {type(source).__name__}"
                )
        exclude = self.exclude
        if exclude is None:
            exclude = ()
        elif isinstance(exclude, str):
            exclude = (exclude,)
        object.__setattr__(self, "exclude", tuple(exclude))


@dataclass
class _Side:
    label: str
    source: RecordSource
    key: Callable[[Any], Any]
    future: Optional[Future] = field(default=None, repr=False)

    @property
    def source_name(self) -> str:
        return getattr(self.source, "name", None) or repr(self.source)


def _build_indices(config: CompareConfig, logger: StructuredLogger) -> Tuple[KeyedIndex, KeyedIndex]:
    sides = [
        _Side(config.first_label, config.first, config.key),
        _Side(config.second_label, config.second, config.second_key or config.key),
    ]
    for side in sides:
        logger.record_fetch_attempt(side.label)

    executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="recordcompare-fetch")
    try:
        for side in sides:
            side.future = executor.submit(
                build_index, side.source, side.key, side.label, config.strict_keys
            )
        done, pending = wait(
            [side.future for side in sides],
            timeout=config.fetch_timeout,
            return_when=FIRST_EXCEPTION,
        )
        for future in pending:
            future.cancel()

        failures: List[Tuple[_Side, BaseException]] = []
        timed_out: List[_Side] = []
        for side in sides:
            if side.future not in done:
                timed_out.append(side)
                continue
            exc = side.future.exception()
            if exc is not None:
                failures.append((side, exc))
                logger.record_fetch_failure(side.label, type(exc).__name__)
            else:
                index = side.future.result()
                logger.record_fetch_success(side.label, index.fetched, len(index.duplicates))

        if failures:
            for side in timed_out:
                logger.warning("Cancelled fetch after failure on other side", side=side.label, source=side.source_name)
            raise failures[0][1]

        if timed_out:
            for side in timed_out:
                logger.record_fetch_failure(side.label, "Timeout")
            side = timed_out[0]
            logger.error(
                "Fetch timed out",
                side=side.label,
                source=side.source_name,
                timeout=config.fetch_timeout,
            )
            raise SourceUnavailable(
                side.label, side.source_name, f"timed out after {config.fetch_timeout}s"
            ) from TimeoutError(f"fetch exceeded {config.fetch_timeout}s")

        return sides[0].future.result(), sides[1].future.result()
    finally:
        # Abandoned fetch threads are not joined.
        executor.shutdown(wait=False, cancel_futures=True)


def run(config: CompareConfig) -> ResultSet:
    """
    Run one comparison.

    Args:
        config: Sources, record shape, key function(s) and exclusions

    Returns:
        ResultSet of the run

    Raises:
        InvalidExclusion: Before any fetch, if an excluded name is not a field
        SourceUnavailable: If either side cannot be fetched or times out
        DuplicateKeyError: In strict-key mode, if a side repeats a key
    """
    logger = get_logger()
    logger.record_run()

    fields = select_fields(config.shape, config.exclude)
    logger.info(
        "Starting comparison",
        shape=config.shape.name,
        first=getattr(config.first, "name", repr(config.first)),
        second=getattr(config.second, "name", repr(config.second)),
        fields=list(fields.names),
        excluded=list(fields.excluded),
    )

    first_index, second_index = _build_indices(config, logger)
    result = compare(first_index, second_index, fields)

    summary = result.summary().to_dict()
    logger.record_result(summary)
    if result.match:
        logger.info("Comparison finished: sources match", **summary)
    else:
        logger.warning("Comparison finished: sources differ", **summary)
    return result


def compare_sources(
    first: RecordSource,
    second: RecordSource,
    shape: RecordShape,
    key: Callable[[Any], Any],
    exclude: Optional[Union[str, Iterable[str]]] = None,
    **options: Any,
) -> ResultSet:
    """Shortcut for ``run(CompareConfig(...))``."""
    return run(
        CompareConfig(
            first=first,
            second=second,
            shape=shape,
            key=key,
            exclude=exclude,
            **options,
        )
    )
