"""Command-line interface for htmlguard using click."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .core.api import clean as clean_markup, parse as parse_markup
from .core.config import load_safelist
from .core.safelist import SAFELISTS, ConfigurationError
from .core.serializer import SerializationError, to_json, to_markup


console = Console()
error_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(message)s',
            handlers=[RichHandler(console=error_console, show_path=False)],
        )


def _read_input(source: str) -> str:
    if source == '-':
        return sys.stdin.read()
    return Path(source).read_text(encoding='utf-8')


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Log debug output to stderr')
def main(ctx, verbose):
    """htmlguard - clean untrusted HTML against named safelists."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument('source', default='-', type=click.Path(allow_dash=True, dir_okay=False))
@click.option(
    '--safelist', '-s',
    default='relaxed',
    show_default=True,
    help=f"Preset safelist ({', '.join(SAFELISTS)})"
)
@click.option(
    '--safelist-file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Custom safelist TOML file (overrides --safelist)'
)
@click.option('--preserve-relative-links', is_flag=True, help='Keep relative links as written (default: the safelist setting)')
@click.option('--base-uri', default='', help='Base URI used to resolve relative links')
@click.option(
    '--output', '-o',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Write the cleaned HTML to a file instead of stdout'
)
def clean(source, safelist, safelist_file, preserve_relative_links, base_uri, output):
    """
    Clean HTML from SOURCE (a file, or - for stdin).

    Examples:
        htmlguard clean comment.html --safelist basic
        cat page.html | htmlguard clean - --base-uri https://example.com/
    """
    try:
        policy = load_safelist(safelist_file) if safelist_file else safelist
        result = clean_markup(
            _read_input(source),
            safe_list=policy,
            preserve_relative_links=True if preserve_relative_links else None,
            base_uri=base_uri,
        )
    except (ConfigurationError, OSError, UnicodeDecodeError) as e:
        error_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    if output:
        output.write_text(result, encoding='utf-8')
        error_console.print(f"[green]Wrote cleaned HTML to[/green] {output}")
    else:
        click.echo(result)


@main.command()
@click.argument('source', default='-', type=click.Path(allow_dash=True, dir_okay=False))
@click.option(
    '--format', '-f', 'output_format',
    type=click.Choice(['markup', 'json', 'text']),
    default='markup',
    show_default=True,
    help='Output format'
)
@click.option('--pretty', is_flag=True, help='Pretty print the output')
@click.option('--indent', type=int, default=2, show_default=True, help='Indent width when pretty printing')
@click.option('--select', 'selector', help='Only output elements matching this CSS selector')
@click.option('--base-uri', default='', help='The URL the HTML was loaded from')
def parse(source, output_format, pretty, indent, selector, base_uri):
    """
    Parse HTML from SOURCE and print it as markup, JSON or text.

    Examples:
        htmlguard parse page.html --format json --pretty
        htmlguard parse page.html --select "ul > li" --format text
    """
    try:
        document = parse_markup(_read_input(source), base_uri=base_uri)
        targets = document.select(selector) if selector else [document]
        for target in targets:
            if output_format == 'json':
                click.echo(to_json(target, pretty=pretty, indent=indent))
            elif output_format == 'text':
                click.echo(target.text())
            else:
                click.echo(to_markup(target, pretty=pretty, indent=indent))
    except (SerializationError, ValueError, OSError) as e:
        error_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@main.command()
def safelists():
    """List the preset safelists."""
    table = Table(title='Preset safelists')
    table.add_column('Name', style='bold cyan')
    table.add_column('Tags')
    table.add_column('URL attributes')

    for name, safelist in SAFELISTS.items():
        url_rules = [
            f"{tag}[{attribute}]: {', '.join(sorted(schemes))}"
            for tag, by_attribute in sorted(safelist.protocols.items())
            for attribute, schemes in sorted(by_attribute.items())
        ]
        table.add_row(
            name,
            ', '.join(sorted(safelist.tags)) or '[dim](text only)[/dim]',
            '\n'.join(url_rules) or '-',
        )

    console.print(table)


@main.command()
def version():
    """Show version information."""
    console.print(f"htmlguard version {__version__}")


if __name__ == '__main__':
    main()
