"""
resight CLI - Inspect what the locator sees on a live page.
"""

import logging
from typing import Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from resight import __version__
from resight.core.errors import ElementNotFound, ResightError, ScrollExhausted
from resight.core.geometry import ViewportPoint

console = Console()


def _parse_point(value: Optional[str]) -> Optional[ViewportPoint]:
    if value is None:
        return None
    try:
        x, y = (float(part) for part in value.split(","))
    except ValueError:
        raise click.BadParameter(f"Expected X,Y but got {value!r}")
    return ViewportPoint(x, y)


def _element_table(elements: Sequence, limit: Optional[int] = None) -> Table:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=5)
    table.add_column("Tag", style="green")
    table.add_column("Text", style="yellow", max_width=40)
    table.add_column("z", justify="right")
    table.add_column("Viewport rect", justify="right")

    shown = elements[:limit] if limit else elements
    for element in shown:
        rect = element.viewport_rect
        text = element.text
        table.add_row(
            str(element.index),
            element.tag,
            escape(text[:40] + "..." if len(text) > 40 else text),
            str(element.z_index),
            f"{rect.left:.0f},{rect.top:.0f} {rect.width:.0f}x{rect.height:.0f}",
        )
    if limit and len(elements) > limit:
        table.add_row("...", f"+{len(elements) - limit} more", "", "", "")
    return table


@click.group()
@click.version_option(version=__version__, prog_name="resight")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """🔭 resight - Visual element re-identification for web pages.

    Scan a page into a snapshot and locate elements by where they are.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("url")
@click.option("--headless/--headed", default=True, help="Run browser in headless mode")
@click.option("--limit", default=30, type=int, help="Maximum rows to print")
def scan(url, headless, limit):
    """
    Scan URL and print the visible elements in visual order.

    \b
    Example:

        resight scan "https://example.com" --limit 10
    """
    from resight.core.driver_factory import create_driver
    from resight.core.session import PageSession

    console.print(Panel.fit(
        f"[bold blue]🔭 resight scan[/bold blue]\n[dim]{url}[/dim]",
        border_style="blue",
    ))

    driver = create_driver(headless=headless)
    try:
        driver.get(url)
        session = PageSession.from_driver(driver)
        snapshot = session.scan()
        console.print(
            f"\n[bold]Snapshot v{snapshot.version}:[/bold] {len(snapshot)} elements, "
            f"scroll {snapshot.scroll.x:.0f},{snapshot.scroll.y:.0f}"
        )
        if snapshot.probe_errors:
            console.print(f"[yellow]⚠️ {len(snapshot.probe_errors)} element(s) failed to probe[/yellow]")
        console.print(_element_table(snapshot.elements, limit))
    except ResightError as e:
        console.print(f"[red]❌ Error: {escape(str(e))}[/red]")
        raise SystemExit(1)
    finally:
        driver.quit()


@cli.command()
@click.argument("url")
@click.option("--text", required=True, help="Text of the element to find (normalized match)")
@click.option("--below", "below_at", default=None, help="Search below X,Y (viewport)")
@click.option("--around", "around_at", default=None, help="Search around X,Y (viewport)")
@click.option("--max-distance", default=None, type=float, help="Maximum distance from the point")
@click.option("--headless/--headed", default=True, help="Run browser in headless mode")
@click.option("--report-dir", default=None, help="Write a flight record report to this directory")
def find(url, text, below_at, around_at, max_distance, headless, report_dir):
    """
    Scroll-search URL for an element with the given text.

    \b
    Examples:

        resight find "https://example.com" --text "More information..."

        resight find "https://example.com/login" --text "Password" --below 0,200
    """
    from resight.core.driver_factory import create_driver
    from resight.core.session import PageSession
    from resight.layers.action.finders import around, below, text_equals
    from resight.reporters.flight_recorder import FlightRecorder

    if below_at and around_at:
        raise click.UsageError("Use either --below or --around, not both")

    predicate = text_equals(text)
    if below_at:
        finder = below(_parse_point(below_at), predicate, max_distance)
    else:
        finder = around(_parse_point(around_at or "0,0"), predicate, max_distance)

    recorder = FlightRecorder(output_dir=report_dir) if report_dir else None

    driver = create_driver(headless=headless)
    try:
        driver.get(url)
        session = PageSession.from_driver(driver, recorder=recorder)
        found = session.search_with_scroll(finder)
        console.print(f"\n[bold green]✅ Found {len(found)} element(s)[/bold green]")
        console.print(_element_table(found))
    except ScrollExhausted as e:
        console.print(f"[red]❌ Not found after {e.attempts} attempts (page stopped scrolling)[/red]")
        console.print(f"[dim]{escape(str(e))}[/dim]")
        raise SystemExit(1)
    except ElementNotFound as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise SystemExit(1)
    finally:
        driver.quit()
        if recorder:
            console.print(f"[dim]Report: {recorder.generate_report()}[/dim]")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
