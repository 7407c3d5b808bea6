"""
streamcheck command line

    streamcheck run --endpoint http://localhost:9000
    streamcheck digest 1024 --offset 1000 --length 24
    streamcheck generate 6291456 datafile-6-MB
"""

import logging
import shutil
import sys
from typing import Optional

import click

from streamcheck.config import load_config
from streamcheck.content import ContentStream
from streamcheck.mintlog import MintLogger
from streamcheck.s3_client import S3Client
from streamcheck.scenarios import ScenarioRunner, expected_sha256


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Deterministic content streams and S3 upload/download verification"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML config file",
)
@click.option("--endpoint", "-e", help="S3 endpoint URL (overrides config)")
@click.option("--quick/--full", default=None, help="Run only the first case per group")
@click.option("--mint", is_flag=True, help="Emit one JSON result line per case")
def run(
    config_path: Optional[str],
    endpoint: Optional[str],
    quick: Optional[bool],
    mint: bool,
):
    """Run the putObject()/getObject() scenarios against an endpoint"""
    try:
        config = load_config(config_path)
    except (OSError, ValueError) as e:
        raise click.ClickException(str(e))

    if endpoint:
        config.s3_endpoint = endpoint
    if quick is not None:
        config.quick = quick
    if mint and config.mint_mode is None:
        config.mint_mode = "core" if config.quick else "full"

    if not config.mint_env:
        click.echo(f"Endpoint: {config.s3_endpoint}")

    client = S3Client(**config.to_client_kwargs())
    runner = ScenarioRunner(
        client, config, MintLogger(config.mint_env, config.run_on_fail)
    )
    try:
        failures = runner.run_all()
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if failures:
        click.echo(f"{failures} case(s) failed", err=True)
        sys.exit(1)
    if not config.mint_env:
        click.echo("All cases passed")


@cli.command()
@click.argument("size", type=click.IntRange(min=0))
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--length", type=click.IntRange(min=0), default=None)
def digest(size: int, offset: int, length: Optional[int]):
    """Print the SHA-256 of a slice of ContentStream(SIZE)"""
    if length is None:
        length = max(size - offset, 0)
    if offset + length > size:
        raise click.BadParameter(
            f"offset {offset} + length {length} exceeds size {size}"
        )
    click.echo(expected_sha256(size, offset=offset, length=length))


@cli.command()
@click.argument("size", type=click.IntRange(min=0))
@click.argument("output", type=click.File("wb"))
def generate(size: int, output):
    """Write SIZE bytes of deterministic content to OUTPUT ('-' for stdout)"""
    with ContentStream(size) as stream:
        shutil.copyfileobj(stream, output, 1024 * 1024)


def main():
    cli()


if __name__ == "__main__":
    main()
