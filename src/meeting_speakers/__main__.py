"""CLI Runner for the Meeting Speaker Mapping System.

Usage:
    meeting-speakers validate mappings.json
    meeting-speakers resolve transcription.json [--mappings saved.json]

Everything runs in memory; nothing is written back to disk.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from meeting_speakers import __version__
from meeting_speakers.config import get_settings
from meeting_speakers.logging import configure_logging

console = Console()


def load_mappings(path: str) -> list:
    """Load a JSON list of mappings, or an object with a ``mappings`` list."""
    from meeting_speakers.models import SpeakerMapping

    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("mappings", [])
    return [SpeakerMapping.model_validate(item) for item in data]


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Meeting Speaker Mapping System.

    Correct AI-guessed speaker identities without persisting meeting data.
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


@cli.command("validate")
@click.argument("mappings_file", type=click.Path(exists=True, dir_okay=False))
def validate_mappings(mappings_file: str):
    """Check a mappings file against the name/role rules."""
    from meeting_speakers.services.validation import MappingValidator, find_duplicate_speaker_ids

    try:
        mappings = load_mappings(mappings_file)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Could not read mappings: {e}")
        sys.exit(1)

    validator = MappingValidator.from_settings(get_settings())
    errors = validator.validate_all(mappings)
    duplicates = find_duplicate_speaker_ids(mappings)

    if not errors and not duplicates:
        console.print(f"[green]All {len(mappings)} mappings are valid.[/green]")
        return

    if duplicates:
        console.print(f"[red]Duplicate speaker IDs:[/red] {', '.join(duplicates)}")

    if errors:
        table = Table(title="Validation Errors")
        table.add_column("Speaker", style="cyan")
        table.add_column("Field")
        table.add_column("Message")
        for speaker_id, field_errors in errors.items():
            for error in field_errors:
                table.add_row(speaker_id, error.field, error.message)
        console.print(table)
    sys.exit(1)


@cli.command("resolve")
@click.argument("transcription_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--mappings", "-m", "mappings_file", default=None,
              type=click.Path(exists=True, dir_okay=False),
              help="Previously saved mappings to merge")
@click.option("--show-transcript/--no-show-transcript", default=True,
              help="Print the transcript with resolved speaker names")
def resolve(transcription_file: str, mappings_file: Optional[str], show_transcript: bool):
    """Merge detected speakers with saved mappings and show the result."""
    from meeting_speakers.models import TranscriptionResult
    from meeting_speakers.services.speaker_mapping_service import SpeakerMappingService

    try:
        result = TranscriptionResult.from_json(Path(transcription_file).read_text())
        existing = load_mappings(mappings_file) if mappings_file else []
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Could not read input: {e}")
        sys.exit(1)

    service = SpeakerMappingService(get_settings())
    service.initialize_from_transcription(result, existing)

    table = Table(title=f"Speakers for {result.transcription_id}")
    table.add_column("Speaker ID", style="cyan")
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Source")

    for mapping in service.mappings:
        table.add_row(
            mapping.speaker_id,
            mapping.name or "[dim]unmapped[/dim]",
            mapping.role or "-",
            mapping.source,
        )

    console.print(table)
    console.print(f"  Next speaker ID: Speaker {service.store.next_speaker_id}")

    if show_transcript and result.transcribed_text:
        console.print("\n[bold]Transcript:[/bold]")
        console.print(service.resolve_transcript(result.transcribed_text), markup=False)


if __name__ == "__main__":
    cli()
