"""Mini README: Entry point CLI for the tree survey station.

Commands:
    * run - start the FastAPI capture service with uvicorn.
    * embed - write survey metadata into a JPEG on disk.
    * inspect - print the geotag and survey fields embedded in a photo.

Settings come from ``TREESURVEY_*`` environment variables when options are
omitted.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from treesurvey.configuration import get_settings
from treesurvey.entries import GeoFix, HealthStatus, SurveyForm, create_entry
from treesurvey.errors import UnsupportedContainer
from treesurvey.logging_utils import configure_root_logger
from treesurvey.metadata import read_geotag, read_survey_fields

cli = typer.Typer(help="Capture, annotate and export tree survey photos.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the capture service using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level)

    # Browsers cannot navigate to the 0.0.0.0 / :: bind-all addresses.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting tree survey service on {effective_host}:{effective_port}.\n"
        f"Open http://{browser_host}:{effective_port}/docs to try the API"
        + (
            " (use your machine's IP address from field devices)."
            if effective_host in {"0.0.0.0", "::"}
            else "."
        )
    )
    uvicorn.run(
        "treesurvey.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command()
def embed(
    photo: Path = typer.Argument(..., exists=True, dir_okay=False, help="JPEG to annotate."),
    output: Path = typer.Argument(..., dir_okay=False, help="Where to write the annotated copy."),
    height_cm: int = typer.Option(10, "--height", help="Tree height in centimetres."),
    planting_year: int = typer.Option(datetime.now().year, "--year", help="Planting year."),
    species: Optional[str] = typer.Option(None, help="Species name."),
    health: str = typer.Option(HealthStatus.HEALTHY.value, help="Healthy, Struggling or Dead."),
    location: str = typer.Option("", help="Location label."),
    job_name: str = typer.Option("", "--job", help="Job name."),
    supervisor: str = typer.Option("", help="Supervisor name."),
    vendor: str = typer.Option("", help="Vendor or contractor."),
    team: str = typer.Option("", help="Field team."),
    latitude: Optional[float] = typer.Option(None, help="Latitude in decimal degrees."),
    longitude: Optional[float] = typer.Option(None, help="Longitude in decimal degrees."),
    accuracy: Optional[float] = typer.Option(None, help="GPS accuracy in metres."),
) -> None:
    """Embed survey metadata into a photo and save the result."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    try:
        form = SurveyForm(
            height_cm=height_cm,
            planting_year=planting_year,
            species=species or settings.default_species,
            health_status=HealthStatus.from_str(health),
            location=location,
            job_name=job_name,
            supervisor=supervisor,
            vendor=vendor,
            team=team,
        )
        gps = GeoFix.from_optional(latitude, longitude, accuracy)
    except ValueError as error:
        raise typer.BadParameter(str(error)) from error

    entry = create_entry(form, gps, photo.read_bytes())
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(entry.photo or b"")
    if entry.embedding_failure is not None:
        typer.echo(f"Warning: metadata not embedded ({entry.embedding_failure}); photo copied unchanged.")
        raise typer.Exit(code=2)
    typer.echo(f"Wrote {output} for entry {entry.entry_id}.")


@cli.command()
def inspect(photo: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Print the embedded geotag and survey fields."""

    payload = photo.read_bytes()
    try:
        fix = read_geotag(payload)
        survey_fields = read_survey_fields(payload)
    except UnsupportedContainer as error:
        raise typer.BadParameter(str(error)) from error

    if fix is None:
        typer.echo("GPS: none")
    else:
        typer.echo(f"GPS: {fix.latitude:.7f}, {fix.longitude:.7f} (±{fix.accuracy_m:g} m)")
    if not survey_fields:
        typer.echo("Survey fields: none")
    for key, value in survey_fields.items():
        typer.echo(f"{key}: {value}")


if __name__ == "__main__":
    cli()
