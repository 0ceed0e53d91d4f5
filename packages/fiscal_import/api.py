"""Public orchestration surface: parse a file and normalize it in one call.

Both entrypoints return error strings instead of raising for anything that is
wrong with the *input* (unsupported type, unreadable format, unusable CSV
columns, bad rows). Programming errors still propagate.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .errors import ColumnMappingError
from .logging_setup import get_logger
from .models import ImportBatch, ImportOptions, StructuredTransaction
from .normalize import normalize_csv_rows, normalize_structured
from .parsers.dispatch import parse_file

_logger = get_logger("fiscal_import.api")

_MAX_WORKERS_ENV_VAR = "FISCAL_IMPORT_MAX_WORKERS"


def import_file(
    path: str | Path,
    options: ImportOptions | None = None,
    categories_by_name: Mapping[str, str] | None = None,
) -> ImportBatch:
    """Parse ``path`` and normalize its rows into transactions.

    ``categories_by_name`` maps lowercased category names to ids; see
    :func:`fiscal_import.normalize.map_category_id`.
    """

    options = options or ImportOptions()
    result = parse_file(path, options)
    batch = ImportBatch(path=str(path), file_type=result.file_type)
    if not result.ok:
        batch.errors = [e.message for e in result.errors]
        return batch

    if result.file_type == "csv":
        try:
            normalized = normalize_csv_rows(result.transactions, options, categories_by_name)
        except ColumnMappingError as e:
            _logger.warning("Column mapping failed for %s: %s", path, e)
            batch.errors = [str(e)]
            return batch
    else:
        structured: list[StructuredTransaction] = result.transactions  # type: ignore[assignment]
        normalized = normalize_structured(structured, options, categories_by_name)

    batch.transactions = normalized.transactions
    batch.errors = normalized.errors
    _logger.info(
        "Imported %d transaction(s) from %s (%d skipped)",
        len(batch.transactions),
        path,
        len(batch.errors),
    )
    return batch


def _resolve_max_workers(n_files: int) -> int:
    """Worker count for :func:`import_files`.

    Honors ``FISCAL_IMPORT_MAX_WORKERS`` when it is a positive integer, caps to
    ``n_files`` and 32, and defaults to ``min(8, n_files)``.
    """

    _env_workers = os.getenv(_MAX_WORKERS_ENV_VAR)
    try:
        max_workers = int(_env_workers) if _env_workers else None
    except ValueError:
        max_workers = None

    if max_workers is not None and max_workers > 0:
        return max(1, min(max_workers, n_files, 32))
    return max(1, min(8, n_files))


def import_files(
    paths: Sequence[str | Path],
    options: ImportOptions | None = None,
    categories_by_name: Mapping[str, str] | None = None,
    *,
    max_workers: int | None = None,
) -> list[ImportBatch]:
    """Import several files concurrently; results keep the order of ``paths``."""

    if not paths:
        return []
    workers = max_workers if max_workers and max_workers > 0 else _resolve_max_workers(len(paths))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fiscal-import") as ex:
        futures = [ex.submit(import_file, p, options, categories_by_name) for p in paths]
        return [f.result() for f in futures]


__all__ = ["import_file", "import_files"]
