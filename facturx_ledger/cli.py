"""
Command-line interface for the ledger builder.

Provides three commands:
- build: Build a reconciled ledger from an invoice request JSON file
- validate: Check an invoice request and list every error code
- version: Show version information
"""

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import logger
from .errors import InvoiceRejected
from .ledger import build_ledger
from .schemas import InvoiceRequest
from .validator import format_ledger_text, validate_request


app = typer.Typer(
    name="facturx-ledger",
    help="Reconciled line-item ledgers for Factur-X invoices",
    add_completion=False,
)


def load_request(input_file: Path) -> InvoiceRequest:
    """Read and parse an invoice request JSON file."""
    with open(input_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return InvoiceRequest.model_validate(data)


@app.command()
def build(
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="Invoice request JSON file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the ledger as JSON to this file",
    ),
) -> None:
    """
    Build the reconciled ledger for an invoice request.

    Prints the ledger table and, with --output, writes the full ledger
    (header, parties, payment means, entries, totals) as JSON.
    """
    try:
        request = load_request(input_file)
        ledger = build_ledger(request)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON in input file: {e}", err=True)
        raise typer.Exit(code=1)
    except ValidationError as e:
        typer.echo(f"Error: Malformed invoice request: {e}", err=True)
        raise typer.Exit(code=1)
    except InvoiceRejected as e:
        typer.echo("Invoice request rejected:", err=True)
        for code in e.errors:
            typer.echo(f"  - {code}", err=True)
        raise typer.Exit(code=1)

    typer.echo(format_ledger_text(ledger))

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(ledger.model_dump_json(indent=2))
        typer.echo(f"\n[OK] Ledger saved to: {output}")
        logger.info(f"Wrote ledger {ledger.header.number} to {output}")


@app.command()
def validate(
    input_file: Path = typer.Option(
        ...,
        "--input",
        "-i",
        help="Invoice request JSON file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
) -> None:
    """
    Validate an invoice request.

    Exits with status 1 when the request has errors.
    """
    try:
        request = load_request(input_file)
    except (json.JSONDecodeError, ValidationError) as e:
        typer.echo(f"Error: Could not read invoice request: {e}", err=True)
        raise typer.Exit(code=1)

    result = validate_request(request)
    if result.is_valid:
        typer.echo(f"[OK] Invoice {result.invoice_id} is valid")
        return

    typer.echo(f"Invoice {result.invoice_id} has {len(result.errors)} error(s):")
    for code in result.errors:
        typer.echo(f"  - {code}")
    raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__
    typer.echo(f"facturx-ledger v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
