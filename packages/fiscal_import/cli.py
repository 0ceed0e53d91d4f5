"""CLI for the ``fiscal_import`` package.

A thin Typer console over :mod:`fiscal_import.api`: ``parse`` imports one
statement file and prints its transactions as JSON, ``columns`` shows what
column detection makes of a CSV/TSV file. A local ``.env`` is loaded with
``python-dotenv`` before any command runs, so ``FISCAL_IMPORT_LOG_LEVEL`` and
``FISCAL_IMPORT_MAX_WORKERS`` can live there.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import ArgumentInfo

from .logging_setup import configure_logging
from .models import ImportOptions

# Module-level argument object to satisfy ruff B008 (no calls in parameter
# defaults).
PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Statement file (.csv, .tsv, .qif, .ofx, .qfx or CAMT .xml)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # missing files are reported by the importer
)


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank statement files (CSV/TSV, QIF, OFX/QFX, CAMT) into normalized "
        "transactions. Loads a local .env before running."
    ),
)


def _build_options(**values: object) -> ImportOptions:
    try:
        return ImportOptions(**values)
    except ValidationError as e:
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"])
            typer.echo(f"Error: invalid option {loc}: {err['msg']}", err=True)
        raise typer.Exit(2) from None


@app.command("parse")
def parse_cmd(
    path: Annotated[Path, PATH_ARGUMENT],
    *,
    header: bool = typer.Option(True, "--header/--no-header", help="First CSV row names columns."),
    delimiter: str | None = typer.Option(
        None, help="CSV delimiter (default ',' for .csv and tab for .tsv)."
    ),
    skip_start: int = typer.Option(0, min=0, help="Lines to drop from the top of a CSV."),
    skip_end: int = typer.Option(0, min=0, help="Lines to drop from the bottom of a CSV."),
    date_format: str | None = typer.Option(
        None, help="Date field order, e.g. 'dd mm yyyy' (detected when omitted)."
    ),
    multiplier: str = typer.Option("1", help="Scale every amount by this factor."),
    flip_amount: bool = typer.Option(False, help="Swap inflow and outflow."),
    import_notes: bool = typer.Option(True, "--import-notes/--no-import-notes"),
    fallback_payee_to_memo: bool = typer.Option(
        False, help="OFX: use MEMO as payee when NAME is empty."
    ),
    csv_date_col: str | None = typer.Option(None, help="Date column (name or index)."),
    csv_amount_col: str | None = typer.Option(None, help="Signed amount column."),
    csv_payee_col: str | None = typer.Option(None, help="Payee column."),
    csv_notes_col: str | None = typer.Option(None, help="Notes column."),
    csv_category_col: str | None = typer.Option(None, help="Category column."),
    csv_inflow_col: str | None = typer.Option(None, help="Inflow column (split mode)."),
    csv_outflow_col: str | None = typer.Option(None, help="Outflow column (split mode)."),
    csv_inout_col: str | None = typer.Option(None, help="In/out marker column."),
    csv_out_value: str = typer.Option("", help="Marker value meaning outflow."),
) -> None:
    """Import one file and print its transactions as a JSON array."""

    from .api import import_file

    options = _build_options(
        has_header_row=header,
        delimiter=delimiter,
        skip_start_lines=skip_start,
        skip_end_lines=skip_end,
        date_format=date_format,
        multiplier=multiplier,
        flip_amount=flip_amount,
        import_notes=import_notes,
        fallback_missing_payee_to_memo=fallback_payee_to_memo,
        date_column=csv_date_col,
        amount_column=csv_amount_col,
        payee_column=csv_payee_col,
        notes_column=csv_notes_col,
        category_column=csv_category_col,
        inflow_column=csv_inflow_col,
        outflow_column=csv_outflow_col,
        in_out_column=csv_inout_col,
        out_value=csv_out_value,
    )

    batch = import_file(path, options)
    typer.echo(json.dumps([tx.to_dict() for tx in batch.transactions], indent=2))
    for message in batch.errors:
        typer.echo(f"Error: {message}", err=True)
    if batch.errors:
        raise typer.Exit(1)


@app.command("columns")
def columns_cmd(
    path: Annotated[Path, PATH_ARGUMENT],
    *,
    header: bool = typer.Option(True, "--header/--no-header", help="First CSV row names columns."),
    delimiter: str | None = typer.Option(None, help="CSV delimiter."),
    skip_start: int = typer.Option(0, min=0, help="Lines to drop from the top."),
    skip_end: int = typer.Option(0, min=0, help="Lines to drop from the bottom."),
) -> None:
    """Show the column roles and date format detected for a CSV/TSV file."""

    from .parsers.dates import detect_date_format
    from .parsers.delimited import (
        apply_line_skips,
        detect_column_mapping,
        parse_delimited,
        read_cell,
    )
    from .parsers.dispatch import read_text

    if path.suffix.lower() not in {".csv", ".tsv"}:
        typer.echo("Error: column detection only applies to .csv and .tsv files", err=True)
        raise typer.Exit(1)

    try:
        contents = apply_line_skips(read_text(path), skip_start, skip_end)
        rows = parse_delimited(
            contents,
            has_header=header,
            delimiter=delimiter or ("\t" if path.suffix.lower() == ".tsv" else ","),
        )
    except Exception as e:
        typer.echo(f"Error: failed reading {path}: {e}", err=True)
        raise typer.Exit(1) from None

    mapping = detect_column_mapping(rows)
    sample = read_cell(rows[0], mapping.date) if rows else None
    payload = {
        "columns": mapping.to_dict(),
        "date_format": detect_date_format(sample),
        "rows": len(rows),
    }
    typer.echo(json.dumps(payload, indent=2))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to FISCAL_IMPORT_LOG_LEVEL, then WARNING)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m fiscal_import.cli`
    app()
