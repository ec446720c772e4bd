#!/usr/bin/env python3
"""
Park Finder
===========

Command-line interface for browsing London's outdoor calisthenics parks.

Usage:
    python parks.py list                          # All parks, best rated first
    python parks.py list --area north --rating 4  # Filter by area and rating
    python parks.py list --postcode "N1 9GU"      # Nearest first
    python parks.py list --sort name              # Alphabetical
    python parks.py areas                         # List areas with park counts
    python parks.py show "PRIMROSE HILL"          # Details for one park
    python parks.py validate                      # Check config and catalog
"""

import asyncio
import sys
from pathlib import Path

import click

from parkfinder import __version__
from parkfinder.catalog import Catalog, CatalogError, load_catalog
from parkfinder.config import ConfigurationError, Settings, load_settings
from parkfinder.finder import Listing, ParkFinder
from parkfinder.geocoding import PostcodeGeocoder, normalize_postcode
from parkfinder.logger import get_logger, setup_logging
from parkfinder.models import Park
from parkfinder.pipeline import SortKey
from parkfinder.state import ViewMode
from parkfinder.utils.geo import format_distance

logger = get_logger("parkfinder.cli")


def setup_logging_from_config(
    settings: Settings,
    log_level_override: str | None = None,
    log_file_override: Path | None = None,
) -> None:
    """Configure logging based on settings and CLI overrides."""
    logging_cfg = settings.logging

    # CLI flags override config file settings
    effective_log_level = log_level_override or logging_cfg.log_level
    effective_log_file = log_file_override or logging_cfg.log_file
    log_dir = settings.config_dir if effective_log_file else None

    setup_logging(
        level=effective_log_level,
        log_file=str(effective_log_file) if effective_log_file else None,
        log_dir=log_dir,
        log_format=logging_cfg.log_format,
        max_bytes=logging_cfg.max_file_size,
        backup_count=logging_cfg.backup_count,
    )


def build_geocoder(settings: Settings) -> PostcodeGeocoder:
    """Create the postcode geocoder from settings."""
    return PostcodeGeocoder(
        base_url=settings.geocoder.base_url,
        timeout=settings.geocoder.timeout,
        user_agent=settings.geocoder.user_agent,
    )


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _load_catalog(ctx) -> Catalog:
    settings: Settings = ctx.obj["settings"]
    setup_logging_from_config(settings, ctx.obj["log_level"], ctx.obj["log_file"])
    try:
        return load_catalog(settings.catalog_file)
    except CatalogError as e:
        logger.error(f"Catalog error: {e}")
        _fail(str(e))


def render_stars(rating: float) -> str:
    """Five-star bar: full stars for the rating bucket, then the numeric rating."""
    full = max(0, min(5, int(rating)))
    return f"{'*' * full}{'.' * (5 - full)} {rating:.1f}"


async def _find_nearest(finder: ParkFinder, postcode: str) -> bool:
    async with finder.geocoder:
        return await finder.find_nearest(postcode)


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=Path(__file__).parent / "config.yaml",
    help="Path to configuration file",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default=None,
    help="Override log level from config",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path from config",
)
@click.version_option(version=__version__, prog_name="parkfinder")
@click.pass_context
def cli(ctx, config: Path, log_level: str | None, log_file: Path | None):
    """
    Park Finder - find outdoor calisthenics parks in London.

    Filter the park catalog by area and rating, and rank it by rating,
    name, or distance from a UK postcode.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["log_level"] = log_level
    ctx.obj["log_file"] = log_file

    try:
        ctx.obj["settings"] = load_settings(config)
    except ConfigurationError as e:
        _fail(str(e))

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("list")
@click.option("--area", "-a", "areas", multiple=True, help="Only parks in this area (repeatable)")
@click.option(
    "--rating",
    "-r",
    "ratings",
    type=click.IntRange(0, 5),
    multiple=True,
    help="Only parks in this rating bucket, e.g. 4 for 4.0-4.9 (repeatable)",
)
@click.option(
    "--sort",
    "-s",
    "sort_key",
    type=click.Choice([k.value for k in SortKey]),
    default=None,
    help="Sort order (default: rating, or distance when --postcode is given)",
)
@click.option("--postcode", "-p", default=None, help="UK postcode to rank parks by distance")
@click.option(
    "--collapse",
    type=int,
    multiple=True,
    help="Collapse a rating group (repeatable)",
)
@click.option("--map", "map_view", is_flag=True, default=False, help="Show the map view")
@click.pass_context
def list_parks(
    ctx,
    areas: tuple[str, ...],
    ratings: tuple[int, ...],
    sort_key: str | None,
    postcode: str | None,
    collapse: tuple[int, ...],
    map_view: bool,
):
    """
    List parks grouped by rating.

    With --postcode, parks are ranked nearest first in a single group.
    """
    catalog = _load_catalog(ctx)
    finder = ParkFinder(catalog)

    for area_id in areas:
        if catalog.get_area(area_id) is None:
            known = ", ".join(a.id for a in catalog.areas)
            _fail(f"Unknown area '{area_id}' (known: {known})")
        finder.toggle_area(area_id)

    for rating in ratings:
        finder.toggle_rating(rating)

    if postcode:
        finder.geocoder = build_geocoder(ctx.obj["settings"])
        if not asyncio.run(_find_nearest(finder, postcode)):
            _fail(finder.state.error or "Postcode lookup failed")

    if sort_key:
        if sort_key == SortKey.DISTANCE and finder.state.user_coordinate is None:
            _fail("Sorting by distance needs --postcode")
        finder.set_sort(sort_key)

    for bucket in collapse:
        finder.toggle_bucket(bucket)

    if map_view:
        finder.toggle_view_mode()

    render_listing(finder.listing())


def render_listing(listing: Listing) -> None:
    """Print a listing as text."""
    if listing.view_mode == ViewMode.MAP:
        click.echo(click.style("MAP VIEW COMING SOON", bold=True))
        click.echo("An interactive map is on the way. Use the list view for now.")
        return

    if listing.showing_distance:
        click.echo(
            click.style(
                "Showing parks sorted by distance from "
                f"{normalize_postcode(listing.state.postcode)}",
                fg="green",
            )
        )

    if not listing.groups:
        click.echo("No parks match the selected filters.")
        return

    for group in listing.groups:
        if listing.showing_distance:
            title = "NEAREST FIRST"
        else:
            title = "*" * group.bucket if group.bucket > 0 else "0 stars"
        marker = "+" if not listing.is_expanded(group.bucket) else "-"
        click.echo()
        click.echo(click.style(f"{marker} {title} ({len(group)} parks)", bold=True))

        if not listing.is_expanded(group.bucket):
            continue

        for park in group.parks:
            _render_park_line(listing, park)


def _render_park_line(listing: Listing, park: Park) -> None:
    line = f"  {park.name:<45} {render_stars(park.rating)}  {listing.area_of(park).name}"
    if listing.showing_distance:
        line += f"  {format_distance(listing.distance_to(park))}"
    click.echo(line)


@cli.command()
@click.pass_context
def areas(ctx):
    """List areas and how many parks each holds."""
    catalog = _load_catalog(ctx)
    counts = catalog.counts()

    click.echo(f"\n{'ID':<10} {'NAME':<20} {'PARKS':>5}")
    click.echo("-" * 37)
    for area in catalog.areas:
        click.echo(f"{area.id:<10} {area.name:<20} {counts[area.id]:>5}")
    click.echo(f"\nTotal: {len(catalog)} parks")


@cli.command()
@click.argument("name_or_key")
@click.option("--image", "-i", "image", type=int, default=0, help="Image to show (0-based)")
@click.pass_context
def show(ctx, name_or_key: str, image: int):
    """Show details for one park, by name or key."""
    catalog = _load_catalog(ctx)
    park = catalog.find(name_or_key)
    if park is None:
        _fail(f"No park found: {name_or_key}")

    finder = ParkFinder(catalog)
    index = finder.show_image(park.key, image)
    listing = finder.listing()

    click.echo(click.style(park.name, bold=True))
    click.echo(f"  Key:        {park.key}")
    click.echo(f"  Area:       {catalog.area_of(park).name}")
    click.echo(f"  Rating:     {render_stars(park.rating)}")
    if park.difficulty:
        click.echo(f"  Difficulty: {park.difficulty}")
    if park.hours:
        click.echo(f"  Hours:      {park.hours}")
    if park.address:
        click.echo(f"  Address:    {park.address}")
    if park.equipment:
        click.echo(f"  Equipment:  {', '.join(park.equipment)}")
    if park.description:
        click.echo(f"  About:      {park.description}")
    if park.url:
        click.echo(f"  More info:  {park.url}")
    if park.maps_url:
        click.echo(f"  Map:        {park.maps_url}")
    if park.images:
        click.echo(f"  Image {index + 1}/{len(park.images)}: {listing.current_image(park)}")


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate configuration and the park catalog."""
    settings: Settings = ctx.obj["settings"]
    click.echo(f"Config:  {ctx.obj['config_path']}")
    click.echo(f"Catalog: {settings.catalog_file}")

    catalog = _load_catalog(ctx)
    counts = catalog.counts()
    for area in catalog.areas:
        click.echo(f"  {area.name:<20} {counts[area.id]:>4} parks")

    duplicates = catalog.duplicate_names()
    if duplicates:
        click.echo(
            click.style(
                f"Warning: {len(duplicates)} park name(s) used more than once: "
                f"{', '.join(duplicates)}",
                fg="yellow",
            )
        )

    missing_coordinates = [p.name for p in catalog.all_parks() if p.coordinates is None]
    if missing_coordinates:
        click.echo(
            click.style(
                f"Warning: {len(missing_coordinates)} park(s) without coordinates "
                "will rank last by distance",
                fg="yellow",
            )
        )

    click.echo(click.style(f"OK: {len(catalog)} parks in {len(catalog.areas)} areas", fg="green"))


if __name__ == "__main__":
    cli()
