"""Offline verification toolkit for exported governance ledgers.

Commands:
    check-chain         Verify the hash chain of an exported ledger file
    verify-attestation  Verify the Ed25519 signature of an attestation file

Both commands work on files alone; nothing is fetched from the server,
so an auditor does not have to trust it.
"""

import json
from collections import defaultdict
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from govgate import __version__
from govgate.domain.models.governance_event import GovernanceEvent
from govgate.domain.models.ledger_verification import LedgerVerificationResult
from govgate.domain.services.ledger_chain_verifier import verify_ledger_chain
from govgate.domain.services.ledger_hashing import canonical_json
from govgate.infrastructure.adapters.crypto import verify_with_public_key


class OutputFormat(str, Enum):
    """Output format options."""

    text = "text"
    json = "json"


app = typer.Typer(
    name="govgate-verify",
    help="Offline verification toolkit for governance ledger exports",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"govgate-verify version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Governance ledger verification toolkit."""


def _load_json(file: Path) -> Any:
    try:
        with open(file, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] File not found: {file}", style="bold")
        raise typer.Exit(code=2)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON in {file}: {e.msg}", style="bold")
        raise typer.Exit(code=2)


def load_ledger_rows(data: Any) -> list[GovernanceEvent]:
    """Parse an export: a JSON array of rows, or an object with ``events``.

    Raises:
        ValueError: If the document or a row is malformed.
    """
    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of ledger rows")
    rows = []
    for index, item in enumerate(data, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"row {index} is not an object")
        try:
            rows.append(GovernanceEvent.from_dict(item))
        except KeyError as e:
            raise ValueError(f"row {index} is missing {e.args[0]}") from e
        except (TypeError, ValueError) as e:
            raise ValueError(f"row {index} is malformed: {e}") from e
    return rows


def verify_export(
    rows: list[GovernanceEvent], org_id: Optional[str] = None
) -> dict[str, LedgerVerificationResult]:
    """Verify each org chain in an export, or only ``org_id``'s."""
    by_org: dict[str, list[GovernanceEvent]] = defaultdict(list)
    for row in rows:
        if org_id is None or row.org_id == org_id:
            by_org[row.org_id].append(row)
    if org_id is not None and org_id not in by_org:
        by_org[org_id] = []
    return {org: verify_ledger_chain(org_rows) for org, org_rows in sorted(by_org.items())}


@app.command()
def check_chain(
    file: Path = typer.Argument(..., help="Exported ledger file (JSON)"),
    org_id: Optional[str] = typer.Option(
        None,
        "--org",
        help="Only verify this organization's chain",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Verify payload hashes and chain links of an exported ledger.

    Each organization's rows form an independent chain. Exit code 1 when
    any chain is invalid, 2 when the file cannot be read.

    Example:
        govgate-verify check-chain ledger.json
        govgate-verify check-chain ledger.json --org org-1 --format json
    """
    try:
        rows = load_ledger_rows(_load_json(file))
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=2)

    results = verify_export(rows, org_id)
    _output_chain_results(results, output_format.value)
    if not all(result.is_valid for result in results.values()):
        raise typer.Exit(code=1)


def _output_chain_results(
    results: dict[str, LedgerVerificationResult], output_format: str
) -> None:
    if output_format == "json":
        output = {
            "is_valid": all(result.is_valid for result in results.values()),
            "chains": {org: result.to_dict() for org, result in results.items()},
        }
        console.print_json(json.dumps(output))
        return

    table = Table(title="Ledger chains")
    table.add_column("Org")
    table.add_column("Status")
    table.add_column("Rows verified", justify="right")
    table.add_column("First invalid", justify="right")
    table.add_column("Reason")
    for org, result in results.items():
        table.add_row(
            org,
            "[green]VALID[/green]" if result.is_valid else "[red]INVALID[/red]",
            str(result.rows_verified),
            str(result.first_invalid_position or ""),
            result.reason.value if result.reason else "",
        )
    console.print(table)
    for org, result in results.items():
        if not result.is_valid and result.message:
            console.print(f"[red]{org}:[/red] {result.message}")


@app.command()
def verify_attestation(
    file: Path = typer.Argument(..., help="Attestation file (JSON)"),
    public_key: Optional[str] = typer.Option(
        None,
        "--public-key",
        "-k",
        help="Expected base64 public key; defaults to the key in the file",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text,
        "--format",
        "-o",
        help="Output format: text or json",
    ),
) -> None:
    """Verify the signature of a ledger attestation.

    Pass --public-key with the key published out of band; without it the
    signature is only checked against the key embedded in the file.

    Example:
        govgate-verify verify-attestation attestation.json -k <base64 key>
    """
    data = _load_json(file)
    if not isinstance(data, dict) or not isinstance(data.get("payload"), dict):
        console.print("[red]Error:[/red] expected an attestation object", style="bold")
        raise typer.Exit(code=2)

    embedded_key = str(data.get("public_key") or "")
    key = public_key or embedded_key
    key_matches = public_key is None or public_key == embedded_key
    message = canonical_json(data["payload"]).encode("utf-8")
    signature_valid = verify_with_public_key(key, message, str(data.get("signature") or ""))
    is_valid = signature_valid and key_matches

    if output_format == OutputFormat.json:
        console.print_json(
            json.dumps(
                {
                    "is_valid": is_valid,
                    "signature_valid": signature_valid,
                    "key_matches": key_matches,
                    "payload": data["payload"],
                }
            )
        )
    elif is_valid:
        payload = data["payload"]
        console.print(
            f"[green]VALID[/green] - {payload.get('org_id')} head "
            f"{payload.get('head_position')} ({payload.get('total_events')} events)"
        )
    else:
        reason = "public key mismatch" if not key_matches else "bad signature"
        console.print(f"[red]INVALID[/red] - {reason}")

    if not is_valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
