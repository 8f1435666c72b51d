"""
Command-line interface for WikiTree Lifelines.

Collects relatives and ancestors from WikiTree, saves them as a crowd
literal and exports GEDCOM.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from wikitree_lifelines import __version__
from wikitree_lifelines.api.client import WikiTreeClient, WikiTreeConfig, WikiTreeError
from wikitree_lifelines.core.ancestors import AncestorArray, AncestorTreeBuilder
from wikitree_lifelines.core.crawler import RelativeGraphCrawler
from wikitree_lifelines.core.crowd import Crowd
from wikitree_lifelines.core.errors import WikiTreeLifelinesError
from wikitree_lifelines.core.gedcom import GedcomRenderer
from wikitree_lifelines.core.merge import PromptDecider
from wikitree_lifelines.core.models import Relation

console = Console()


def async_command(f):
    """Decorator to run async commands."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def reports_errors(f):
    """Print package errors instead of a traceback and exit with status 1."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (WikiTreeLifelinesError, WikiTreeError) as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)
    return wrapper


@click.group()
@click.version_option(version=__version__, prog_name="wikitree")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Resource file with WikiTree credentials (default ~/.wikitreerc)",
)
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[Path]):
    """
    Collect WikiTree profiles and export them as GEDCOM.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _config(ctx: click.Context) -> WikiTreeConfig:
    return WikiTreeConfig.from_resource(ctx.obj.get("config_path"))


@cli.command("nucleus")
@click.argument("keys")
@click.option("--radius", "-r", default=1, show_default=True, type=click.IntRange(min=1),
              help="Number of steps away from the starting profiles")
@click.option("--relations", "-c", default="+-=x", show_default=True,
              help="Relatives to follow: - parents, + children, = siblings, x spouses")
@click.option("--output", "-o", default="nucleus.json", show_default=True,
              type=click.Path(dir_okay=False, path_type=Path), help="Crowd file to write")
@click.pass_context
@reports_errors
@async_command
async def nucleus(ctx, keys: str, radius: int, relations: str, output: Path):
    """
    Collect everybody within RADIUS steps of KEYS.

    KEYS is a comma-separated list of WikiTree Ids or Names, e.g. Laurie-474.
    Conflicting values for the same profile are asked about interactively.
    """
    try:
        mask = Relation.parse_mask(relations)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--relations")

    crowd = Crowd(decider=PromptDecider())
    async with WikiTreeClient(_config(ctx)) as client:
        crawler = RelativeGraphCrawler(client, crowd)
        await crawler.expand(keys, radius=radius, relations=mask)

    crowd.save(output)
    console.print(f"[green]Collected {len(crowd)} persons into {output}[/green]")


@cli.command("ancestors")
@click.argument("key")
@click.option("--depth", "-d", default=5, show_default=True, type=click.IntRange(min=1),
              help="Number of generations")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              help="Also save the ancestors as a crowd file")
@click.pass_context
@reports_errors
@async_command
async def ancestors(ctx, key: str, depth: int, output: Optional[Path]):
    """List the ancestors of KEY by Ahnentafel number."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Fetching ancestors...", total=None)
        async with WikiTreeClient(_config(ctx)) as client:
            builder = AncestorTreeBuilder(client)
            tree = await builder.build(key, depth)

    table = Table(title=f"Ancestors of {tree.subject}")
    table.add_column("No.", justify="right")
    table.add_column("Gen", justify="right")
    table.add_column("Person")
    table.add_column("WikiTree")
    for index, person in tree.items():
        table.add_row(
            str(index),
            str(AncestorArray.generation(index)),
            str(person),
            person.name or person.id,
        )
    console.print(table)

    if output:
        builder.crowd.save(output)
        console.print(f"[green]Saved {len(builder.crowd)} persons to {output}[/green]")


@cli.command("gedcom")
@click.argument("store", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path),
              help="GEDCOM file to write (default: STORE with .ged suffix)")
@click.option("--childless", is_flag=True, help="Also create families for couples without children")
@reports_errors
def gedcom(store: Path, output: Optional[Path], childless: bool):
    """Export a crowd file as GEDCOM."""
    crowd = Crowd.load(store, decider=PromptDecider())
    output = output or store.with_suffix(".ged")
    GedcomRenderer().save(crowd, output, childless=childless)
    console.print(f"[green]Wrote {output}[/green]")


@cli.command("find")
@click.argument("store", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("pattern")
@reports_errors
def find(store: Path, pattern: str):
    """List persons in STORE whose name matches the regex PATTERN."""
    crowd = Crowd.load(store)
    found = crowd.find(pattern)
    if not found:
        console.print("[yellow]No matches[/yellow]")
        return

    table = Table(title=f"Matches for {pattern!r}")
    table.add_column("Key")
    table.add_column("Id", justify="right")
    table.add_column("Person")
    for simple, person in sorted(found.items()):
        table.add_row(simple, person.id, str(person))
    console.print(table)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
