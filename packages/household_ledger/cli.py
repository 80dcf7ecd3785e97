# ruff: noqa: I001
"""CLI for the ``household_ledger`` package.

A Typer console interface over :mod:`household_ledger.api`. Environment
variables (``DATABASE_URL``, ``OPENAI_API_KEY`` and the
``HOUSEHOLD_LEDGER_*`` settings) are loaded from a local ``.env`` using
``python-dotenv`` without overriding the process environment. Every command
prints ``Error: ...`` to stderr and exits non-zero on failure.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging


def _fail(message: str) -> typer.Exit:
    print(f"Error: {message}", file=sys.stderr)
    return typer.Exit(1)


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise _fail(f"File not found: {path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {path}") from None
    except IsADirectoryError:
        raise _fail(f"Not a file: {path}") from None


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank statements into the household ledger: detect the format, "
        "classify transfers, categorize spending and link own-account legs. "
        "Loads settings from a local .env before running."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
FILE_OPTION: OptionInfo = typer.Option(
    ...,
    "--file",
    help="Path to a bank statement (CSV/TSV, XLSX or PDF).",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


@app.command("detect")
def detect_cmd(
    file: Annotated[Path, FILE_OPTION],
    content_type: str | None = typer.Option(
        None, "--content-type", help="MIME type reported with the upload, if known."
    ),
) -> None:
    """Print the adapter that would parse FILE."""

    from .ingest.detect import resolve_adapter

    data = _read_file(file)
    try:
        adapter = resolve_adapter(data, "auto", content_type)
    except Exception as e:
        raise _fail(f"detection failed: {e}") from e
    typer.echo(adapter.name)


@app.command("parse")
def parse_cmd(
    file: Annotated[Path, FILE_OPTION],
    bank: str = typer.Option(
        "auto", "--bank", help="Bank identifier, or 'auto' to detect from the file."
    ),
) -> None:
    """Process FILE without a database and print one TSV line per movement.

    Columns: date, amount, category, transfer type, counterparty, description.
    """

    from .api import process_statement
    from .ingest import MalformedInputError

    data = _read_file(file)
    try:
        movements, bank_source = process_statement(data, bank)
    except MalformedInputError as e:
        raise _fail(f"unreadable statement: {e}") from e
    except ValueError as e:
        raise _fail(str(e)) from e

    for m in movements:
        typer.echo(
            "\t".join(
                (
                    m.date,
                    f"{m.amount:.2f}",
                    m.category_id,
                    m.transfer_type,
                    m.counterparty_name or "",
                    m.description,
                )
            )
        )
    print(f"{len(movements)} movements ({bank_source})", file=sys.stderr)


@app.command("ingest")
def ingest_cmd(
    file: Annotated[Path, FILE_OPTION],
    household_id: str = typer.Option(..., "--household-id", help="Household identifier."),
    bank: str = typer.Option(
        "auto", "--bank", help="Bank identifier, or 'auto' to detect from the file."
    ),
    owner_id: str | None = typer.Option(
        None, "--owner-id", help="Member who owns the account on the statement."
    ),
    acting_user_id: str | None = typer.Option(
        None, "--acting-user-id", help="Member uploading the statement."
    ),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Process FILE, persist new movements and link own-account transfers."""

    from db.client import session_scope

    from .api import ingest_statement
    from .ingest import MalformedInputError

    data = _read_file(file)
    try:
        with session_scope(database_url=database_url) as session:
            result = ingest_statement(
                session,
                data,
                household_id=household_id,
                bank=bank,
                owner_id=owner_id,
                acting_user_id=acting_user_id,
            )
    except MalformedInputError as e:
        raise _fail(f"unreadable statement: {e}") from e
    except Exception as e:
        raise _fail(f"ingest failed: {e}") from e

    typer.echo(
        f"bank={result.bank_source} created={result.created} "
        f"skipped={result.skipped} linked={result.linked}"
    )


@app.command("link")
def link_cmd(
    household_id: str = typer.Option(..., "--household-id", help="Household identifier."),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Pair own-account transfer legs already stored for a household."""

    from .api import link

    try:
        linked = link(household_id, database_url=database_url)
    except Exception as e:
        raise _fail(f"link failed: {e}") from e
    typer.echo(f"linked={linked}")


@app.command("seed-categories")
def seed_categories_cmd(
    file: Path | None = typer.Option(
        None, "--file", help="Category seed JSON (defaults to the bundled seed)."
    ),
    database_url: str | None = typer.Option(
        None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
    ),
) -> None:
    """Load the category catalog into ``hl_categories``."""

    from db.client import session_scope

    from .categories import load_catalog, seed_categories

    try:
        catalog = load_catalog(file)
    except FileNotFoundError:
        raise _fail(f"File not found: {file}") from None
    except ValueError as e:
        raise _fail(f"invalid category seed: {e}") from e

    try:
        with session_scope(database_url=database_url) as session:
            n = seed_categories(session, catalog)
    except Exception as e:
        raise _fail(f"seeding failed: {e}") from e
    typer.echo(f"seeded={n}")


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
