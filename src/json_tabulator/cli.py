"""Command-line interface for the JSON Tabulator."""

import asyncio
import json
import logging
import click
from pathlib import Path
from . import __version__
from .config import TabulatorConfig
from .tabulator import JSONTabulator
from .types import TabulationError


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _load_config(config_file: Path) -> TabulatorConfig:
    if config_file is None:
        return TabulatorConfig()
    return TabulatorConfig.from_file(config_file)


@click.group()
@click.version_option(version=__version__)
def main():
    """JSON Tabulator - Convert between nested JSON and grouped spreadsheets."""
    pass


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', default='output.xlsx', help='Output workbook (default: output.xlsx)')
@click.option('--flat', is_flag=True, help='Write all records to a single sheet')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON file with tabulator options')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def export(input_file: Path, output: str, flat: bool, config_file: Path, verbose: bool):
    """Export a JSON file to an .xlsx workbook."""
    _configure_logging(verbose)
    click.echo(f"Exporting {input_file} to {output}...")

    try:
        json_content = input_file.read_text(encoding='utf-8')

        tabulator = JSONTabulator(_load_config(config_file))
        result = asyncio.run(tabulator.export(json_content, output, group=not flat))

        if result.success:
            click.echo(f"✅ Wrote {result.record_count} records to {result.sheet_count} sheets in {result.output_path}")
            for error in result.errors or []:
                click.echo(f"⚠️  Skipped {error}")
        else:
            click.echo("❌ Export operation failed:")
            for error in result.errors or []:
                click.echo(f"   • {error}")
            raise click.exceptions.Exit(1)

    except (OSError, ValueError, TabulationError) as e:
        click.echo(f"❌ Error: {e}")
        raise click.exceptions.Exit(1)


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', help='Output JSON file path')
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON file with tabulator options')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def restore(input_file: Path, output: str, config_file: Path, verbose: bool):
    """Restore JSON from an .xlsx workbook."""
    _configure_logging(verbose)

    try:
        tabulator = JSONTabulator(_load_config(config_file))
        result = asyncio.run(tabulator.restore(str(input_file)))

        if result.success:
            if output:
                output_path = Path(output)
                output_path.write_text(result.json_string, encoding='utf-8')
                click.echo(f"✅ Successfully wrote {result.record_count} records to {output_path}")
            else:
                click.echo(result.json_string)
        else:
            click.echo("❌ Restore operation failed:")
            for error in result.errors or []:
                click.echo(f"   • {error}")
            raise click.exceptions.Exit(1)

    except (OSError, ValueError, TabulationError) as e:
        click.echo(f"❌ Error: {e}")
        raise click.exceptions.Exit(1)


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--config', 'config_file', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON file with tabulator options')
@click.option('--json', 'as_json', is_flag=True, help='Print the grouping as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def inspect(input_file: Path, config_file: Path, as_json: bool, verbose: bool):
    """Show how the records of a JSON file would be grouped."""
    _configure_logging(verbose)

    try:
        tabulator = JSONTabulator(_load_config(config_file))
        data = tabulator.parser.parse(input_file.read_text(encoding='utf-8'))
        groups = tabulator.describe(data)

    except (OSError, ValueError, TabulationError) as e:
        click.echo(f"❌ Error: {e}")
        raise click.exceptions.Exit(1)

    if as_json:
        click.echo(json.dumps(groups, indent=2))
        return

    click.echo(f"📊 {len(groups)} groups")
    for group in groups:
        click.echo(f"  {group['name']} ({group['recordCount']} records, {group['strategy']})")
        for key in group['signatureKeys']:
            click.echo(f"     • {key}")


if __name__ == '__main__':
    main()
