"""crbrowser CLI - one-shot browser commands from the terminal."""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional, TypeVar

import click
from rich import box
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from crbrowser.browser import Browser, BrowserError, ElementNotFoundError
from crbrowser.core.config import get_settings
from crbrowser.core.logging import LogContext, setup_logging
from crbrowser.models import LaunchOptions

console = Console()

T = TypeVar("T")


def _run_in_browser(
    ctx: click.Context,
    url: str,
    action: Callable[[Browser], Awaitable[T]],
) -> T:
    """Open a browser, navigate to ``url``, run ``action`` and close the browser."""
    params = ctx.obj

    async def _session() -> T:
        async with Browser(params["options"], timeout=params["timeout"]) as browser:
            await browser.navigate(url)
            return await action(browser)

    with LogContext(command=ctx.info_name, url=url):
        try:
            return asyncio.run(_session())
        except ElementNotFoundError as e:
            console.print(f"[red]✗ Not found:[/red] {e.xpath}")
            raise click.Abort()
        except BrowserError as e:
            console.print(f"[red]✗ Browser error:[/red] {e}")
            raise click.Abort()


@click.group()
@click.version_option(version="0.1.0", prog_name="crbrowser")
@click.option("--headless/--headed", default=None, help="Show or hide the browser window")
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-call timeout in seconds",
)
@click.option("--cdp-url", help="Attach to a running browser instead of launching one")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    headless: Optional[bool],
    timeout: Optional[float],
    cdp_url: Optional[str],
    verbose: bool,
):
    """
    crbrowser - drive Chromium by XPath.

    Each command opens a browser, loads URL, performs one action and exits.
    """
    setup_logging("DEBUG" if verbose else None)

    settings = get_settings()
    options = LaunchOptions.from_settings(settings)
    if headless is not None:
        options.headless = headless
    if cdp_url:
        options.cdp_url = cdp_url

    ctx.obj = {"options": options, "timeout": timeout}


@cli.command()
@click.argument("url")
@click.pass_context
def source(ctx: click.Context, url: str):
    """Print the HTML source of URL."""
    html = _run_in_browser(ctx, url, lambda b: b.get_source())
    console.print(Syntax(html, "html", word_wrap=True))


@cli.command()
@click.argument("url")
@click.pass_context
def location(ctx: click.Context, url: str):
    """Print the final URL after loading URL (follows redirects)."""
    final_url = _run_in_browser(ctx, url, lambda b: b.location())
    console.print(final_url)


@cli.command()
@click.argument("url")
@click.argument("xpath")
@click.option("--json", "as_json", is_flag=True, help="Print attributes as JSON")
@click.pass_context
def attrs(ctx: click.Context, url: str, xpath: str, as_json: bool):
    """
    Show the attributes of the element at XPATH.

    Examples:

        crbrowser attrs https://example.com "//a[1]"
    """
    attributes = _run_in_browser(ctx, url, lambda b: b.get_attributes(xpath))

    if as_json:
        click.echo(json.dumps(attributes, indent=2))
        return

    table = Table(title=xpath, box=box.ROUNDED, border_style="cyan")
    table.add_column("Attribute", style="cyan")
    table.add_column("Value", style="green")
    for name, value in attributes.items():
        table.add_row(name, value)
    console.print(table)


@cli.command(name="click")
@click.argument("url")
@click.argument("xpath")
@click.option("--all", "all_nodes", is_flag=True, help="Click every matching node")
@click.option("--xy", "by_xy", is_flag=True, help="Click by window coordinates")
@click.pass_context
def click_cmd(ctx: click.Context, url: str, xpath: str, all_nodes: bool, by_xy: bool):
    """Click the element at XPATH and print where the page ended up."""
    if all_nodes and by_xy:
        raise click.UsageError("--all and --xy are mutually exclusive")

    async def _click(browser: Browser) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if all_nodes:
            result["clicked"] = await browser.click_node(xpath)
        elif by_xy:
            result["point"] = await browser.click_by_xy(xpath)
        else:
            await browser.click(xpath)
            result["clicked"] = 1
        result["location"] = await browser.location()
        return result

    result = _run_in_browser(ctx, url, _click)
    if "point" in result:
        x, y = result["point"]
        console.print(f"[green]✓[/green] Clicked at ({x}, {y})")
    else:
        console.print(f"[green]✓[/green] Clicked {result['clicked']} node(s)")
    console.print(f"[dim]Now at {result['location']}[/dim]")


@cli.command()
@click.argument("url")
@click.option("--output", "-o", type=click.Path(dir_okay=False), required=True, help="Image file")
@click.option("--xpath", help="Capture only this element")
@click.option("--viewport-only", is_flag=True, help="Capture the visible viewport only")
@click.pass_context
def screenshot(
    ctx: click.Context, url: str, output: str, xpath: Optional[str], viewport_only: bool
):
    """Save a screenshot of URL."""
    image_type = "jpeg" if Path(output).suffix.lower() in (".jpg", ".jpeg") else "png"

    data = _run_in_browser(
        ctx,
        url,
        lambda b: b.screenshot(
            path=output,
            full_page=not viewport_only,
            image_type=image_type,
            xpath=xpath,
        ),
    )
    console.print(f"[green]✓[/green] Saved {len(data):,} bytes to [bold]{output}[/bold]")


@cli.command()
@click.argument("url")
@click.argument("xpath")
@click.pass_context
def find(ctx: click.Context, url: str, xpath: str):
    """Wait for XPATH to match and report how many nodes it found."""
    nodes = _run_in_browser(ctx, url, lambda b: b.find_element(xpath))
    console.print(f"[green]✓[/green] {len(nodes)} node(s) match [bold]{xpath}[/bold]")


if __name__ == "__main__":
    cli()
