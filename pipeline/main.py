#!/usr/bin/env python3
"""
HAUNTED PLACES - Ingestion Pipeline Entry Point

Runs ingestion scans against the third-party providers and the LLM, and
reports on scan history and likely duplicates.

Usage:
    python -m pipeline.main init-db
    python -m pipeline.main scan api
    python -m pipeline.main scan multi --provider dbpedia --provider geonames --country TR
    python -m pipeline.main duplicates --threshold 0.7
    python -m pipeline.main logs
"""

import sys
from pathlib import Path

import click
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn
from sqlalchemy import func, select

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pipeline.config import MULTI_SCAN_PROVIDERS, PROVIDERS, settings
from pipeline.database import Place, ScanLog, SessionLocal, create_all_tables
from pipeline.deduplication import find_potential_duplicates
from pipeline.ingestion import SCANS, ScanConfig


console = Console()


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def cli(debug):
    """HAUNTED PLACES - Ingestion Pipeline"""
    if debug:
        from pipeline.utils.logging import setup_logging
        setup_logging(level="DEBUG")


@cli.command("init-db")
def init_db():
    """Create database tables."""
    create_all_tables()
    console.print("[green]Database tables created[/green]")


@cli.command()
@click.argument("scan_type", type=click.Choice(list(SCANS.keys()) + ["auto"]))
@click.option("--provider", "providers", multiple=True, type=click.Choice(MULTI_SCAN_PROVIDERS),
              help="Provider for the multi-source scan (repeatable)")
@click.option("--country", default=None, help="ISO country code, e.g. TR")
@click.option("--category", default=None, help="Category to search for")
@click.option("--limit", type=int, default=None, help="Maximum results per provider")
def scan(scan_type: str, providers: tuple, country: str, category: str, limit: int):
    """
    Run an ingestion scan.

    SCAN_TYPE is 'api', 'ai', 'multi', or 'auto' for the scan selected by
    the data_collection_method app setting.
    """
    session = SessionLocal()

    try:
        config = ScanConfig.from_settings(
            settings,
            session,
            country=country.upper() if country else None,
            category=category,
            enabled_providers=list(providers) or None,
            result_limit=limit,
        )
        if scan_type == "auto":
            scan_type = config.collection_method
            if scan_type not in SCANS:
                raise click.ClickException(f"Unknown data collection method: {scan_type}")

        console.print(f"\n[bold blue]HAUNTED PLACES - {scan_type.upper()} Scan[/bold blue]")
        if scan_type == "multi":
            console.print(f"Providers: {', '.join(config.enabled_providers) or 'none'}")
            console.print(f"Country: {config.country}  Category: {config.category}\n")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Scanning ({scan_type})...", total=None)

            try:
                with SCANS[scan_type](session=session) as scanner:
                    result = scanner.run(config)
            except Exception as e:
                progress.update(task, description=f"[red]✗ {scan_type} scan failed[/red]")
                logger.exception(f"Error running {scan_type} scan")
                raise click.ClickException(str(e))

            if result.status == "skipped":
                progress.update(task, description="[yellow]Scanning is paused[/yellow]")
            elif result.success:
                progress.update(task, description=f"[green]✓ {scan_type} scan complete[/green]")
            else:
                progress.update(task, description=f"[red]✗ {scan_type} scan failed[/red]")

    finally:
        session.close()

    # Print summary
    console.print("\n[bold]Scan Summary[/bold]")
    table = Table()
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Status", result.status)
    table.add_row("Found", str(result.places_found))
    table.add_row("Unique", str(result.unique_places))
    table.add_row("Added", str(result.places_added))
    table.add_row("Merged", str(result.places_merged))
    table.add_row("Possible duplicates", str(result.possible_duplicates))
    duration = f"{result.duration_seconds:.1f}s" if result.duration_seconds else "-"
    table.add_row("Duration", duration)
    console.print(table)

    for error in result.errors:
        console.print(f"[red]- {error}[/red]")


@cli.command()
@click.option("--limit", type=int, default=10, help="Number of logs to show")
def logs(limit: int):
    """Show recent scan logs."""
    console.print("\n[bold blue]Recent Scans[/bold blue]\n")

    session = SessionLocal()

    try:
        table = Table()
        table.add_column("Started")
        table.add_column("Query")
        table.add_column("Status")
        table.add_column("Found")
        table.add_column("Added")
        table.add_column("Merged")

        scan_logs = session.scalars(
            select(ScanLog).order_by(ScanLog.scan_started_at.desc()).limit(limit)
        ).all()

        if not scan_logs:
            console.print("[yellow]No scans yet.[/yellow]")
            return

        for log in scan_logs:
            started = log.scan_started_at.strftime("%Y-%m-%d %H:%M") if log.scan_started_at else "-"
            if log.status == "completed":
                status = "[green]completed[/green]"
            elif log.status == "failed":
                status = "[red]failed[/red]"
            else:
                status = f"[yellow]{log.status}[/yellow]"

            table.add_row(
                started,
                (log.search_query or "-")[:40],
                status,
                str(log.places_found or 0),
                str(log.places_added or 0),
                str(log.places_merged or 0),
            )

        console.print(table)

    finally:
        session.close()


@cli.command()
@click.option("--threshold", type=float, default=None, help="Minimum name similarity (default 0.7)")
def duplicates(threshold: float):
    """List stored places that look like duplicates of each other."""
    session = SessionLocal()

    try:
        groups = find_potential_duplicates(session, threshold)
    finally:
        session.close()

    if not groups:
        console.print("[green]No potential duplicates found.[/green]")
        return

    table = Table(title=f"Potential duplicates ({len(groups)})")
    table.add_column("Place")
    table.add_column("Similar to")
    table.add_column("Score")
    table.add_column("Distance")

    for group in groups:
        for match in group["similar_places"]:
            distance = f"{match['distance_km']:.2f} km" if match["distance_km"] is not None else "-"
            table.add_row(
                group["place"]["name"][:40],
                match["place_name"][:40],
                f"{match['similarity_score'] * 100:.0f}%",
                distance,
            )

    console.print(table)


@cli.command()
def status():
    """Show place counts and provider configuration."""
    console.print("\n[bold blue]HAUNTED PLACES - Pipeline Status[/bold blue]\n")

    session = SessionLocal()

    try:
        counts = dict(session.execute(
            select(Place.status, func.count()).group_by(Place.status)
        ).all())
    finally:
        session.close()

    stats_table = Table()
    stats_table.add_column("Status")
    stats_table.add_column("Places")
    for place_status, count in sorted(counts.items()):
        stats_table.add_row(place_status, str(count))
    stats_table.add_row("[bold]total[/bold]", str(sum(counts.values())))
    console.print(stats_table)

    console.print("\n[bold]Providers[/bold]")
    table = Table()
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Credential")

    for provider_id, info in PROVIDERS.items():
        key_setting = info.get("key_setting")
        if not key_setting:
            credential = "[dim]not needed[/dim]"
        elif getattr(settings.scan, key_setting, None):
            credential = "[green]✓[/green]"
        else:
            credential = "[red]missing[/red]"
        table.add_row(provider_id, info["name"], credential)

    console.print(table)


if __name__ == "__main__":
    cli()
