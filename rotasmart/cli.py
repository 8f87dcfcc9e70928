"""Command-line interface: batch files, reverse lookups and the HTTP server."""

import json
import sys
from collections import Counter
from typing import List, Optional

import click
import uvicorn
from pydantic import ValidationError

from rotasmart.core.config import settings
from rotasmart.core.geocoding.batch import get_batch_geocoder
from rotasmart.core.logging import configure_logging
from rotasmart.models.address import AddressInput


def _load_rows(path: str) -> List[AddressInput]:
    """Read address rows from a JSON list or a ``{"addresses": [...]}`` object."""
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)

    if isinstance(payload, dict):
        payload = payload.get("addresses")
    if not isinstance(payload, list):
        raise click.BadParameter(
            "expected a list of addresses or an object with an 'addresses' list",
            param_hint="INPUT",
        )

    rows = []
    for index, entry in enumerate(payload):
        try:
            rows.append(AddressInput.model_validate(entry))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "row"
            raise click.BadParameter(
                f"address {index} is invalid ({field}: {first['msg']})",
                param_hint="INPUT",
            ) from e
    return rows


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """RotaSmart address geocoding and reconciliation."""
    configure_logging(
        level="debug" if verbose else settings.LOG_LEVEL,
        json_logs=False,
    )


@cli.command()
@click.argument("input_file", metavar="INPUT", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help="Write results to this file instead of stdout",
)
def batch(input_file: str, output: Optional[str]):
    """Reconcile every address row of a JSON file."""
    rows = _load_rows(input_file)
    results = get_batch_geocoder().geocode_batch(rows)

    body = json.dumps(
        [result.model_dump(mode="json", by_alias=True) for result in results],
        ensure_ascii=False,
        indent=2,
    )
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(body + "\n")
        statuses = Counter(result.status.value for result in results)
        summary = ", ".join(f"{count} {status}" for status, count in sorted(statuses.items()))
        click.echo(f"Reconciled {len(results)} rows ({summary}) into {output}")
    else:
        click.echo(body)


@cli.command()
@click.argument("lat", type=float)
@click.argument("lon", type=float)
def reverse(lat: float, lon: float):
    """Print the address a provider reports for LAT LON."""
    candidate = get_batch_geocoder().reverse_lookup(lat, lon)
    if candidate is None or not candidate.display_name:
        click.echo(f"No address found for {lat}, {lon}", err=True)
        sys.exit(1)
    click.echo(candidate.display_name)


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", "-p", default=8000, type=int, help="Port to listen on")
def serve(host: str, port: int):
    """Run the HTTP API."""
    uvicorn.run("rotasmart.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    cli()
