"""
CLI for manual control of speakers
"""

import sys
from typing import Callable, Optional, Tuple, TypeVar

import click
from dotenv import load_dotenv
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import SpeakerConfig
from .exceptions import SpeakerError, TransportError
from .logging_utils import get_logger, setup_logging
from .speaker import Speaker

logger = get_logger(__name__)

T = TypeVar("T")


def _with_retries(ctx: click.Context, fn: Callable[[], T]) -> T:
    """Run ``fn``, retrying transport failures as configured"""
    config: SpeakerConfig = ctx.obj['config']
    retrying = Retrying(
        stop=stop_after_attempt(config.cli_retries + 1),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type(TransportError),
        reraise=True,
    )
    return retrying(fn)


def _run_once(fn: Callable[[], T]) -> T:
    try:
        return fn()
    except SpeakerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _run(ctx: click.Context, fn: Callable[[], T]) -> T:
    return _run_once(lambda: _with_retries(ctx, fn))


def _speaker(ctx: click.Context, address: str) -> Speaker:
    logger.info(f"Connecting to speaker at {address}")
    return _run(ctx, lambda: Speaker(address, config=ctx.obj['config']))


@click.group()
@click.option('--log-level', default=None, help='Log level')
@click.option('--log-format', default=None, type=click.Choice(['text', 'json']), help='Log format')
@click.option('--timeout', type=float, default=None, help='Network timeout in seconds')
@click.option('--retries', type=click.IntRange(0, 10), default=None,
              help='Retries on transport errors')
@click.pass_context
def cli(ctx, log_level, log_format, timeout, retries):
    """Speaker CLI - inspect and control speakers by IP address"""
    load_dotenv()
    config = SpeakerConfig.from_env()

    overrides = {}
    if log_level:
        overrides['log_level'] = log_level
    if log_format:
        overrides['log_format'] = log_format
    if timeout is not None:
        overrides['timeout_s'] = timeout
    if retries is not None:
        overrides['cli_retries'] = retries
    if overrides:
        config = SpeakerConfig(**{**config.model_dump(), **overrides})

    setup_logging(log_level=config.log_level, log_format=config.log_format)

    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.argument('address')
@click.pass_context
def info(ctx, address):
    """Show name and room of a speaker"""
    speaker = _speaker(ctx, address)
    descriptor = speaker.descriptor
    click.echo(f"Speaker {speaker.address}:")
    click.echo(f"  Name: {descriptor.name}")
    click.echo(f"  Room: {descriptor.room}")
    if descriptor.model_name:
        click.echo(f"  Model: {descriptor.model_name}")
    if descriptor.software_version:
        click.echo(f"  Software: {descriptor.software_version}")


@cli.command()
@click.argument('address')
@click.pass_context
def topology(ctx, address):
    """Show group membership of a speaker"""
    speaker = _speaker(ctx, address)
    entry = _run(ctx, speaker.refresh_topology)
    click.echo(f"Topology for {speaker.room} ({speaker.address}):")
    click.echo(f"  Group: {entry.group}")
    click.echo(f"  Coordinator: {'Yes' if entry.coordinator else 'No'}")
    click.echo(f"  UUID: {entry.uuid}")


@cli.command()
@click.argument('address')
@click.option('--set', 'level', type=int, help='Set absolute volume')
@click.option('--adjust', type=int, help='Change volume by a relative amount')
@click.pass_context
def volume(ctx, address, level: Optional[int], adjust: Optional[int]):
    """Read or change the volume of a speaker"""
    if level is not None and adjust is not None:
        raise click.UsageError("--set and --adjust are mutually exclusive")

    speaker = _speaker(ctx, address)
    if level is not None:
        _run(ctx, lambda: speaker.set_volume(level))
        click.echo(f"Set volume of {speaker.room} to {level}")
    elif adjust is not None:
        # Not retried: a repeat would move the volume twice
        new_volume = _run_once(lambda: speaker.adjust_volume(adjust))
        suffix = f" (now {new_volume})" if new_volume is not None else ""
        click.echo(f"Adjusted volume of {speaker.room} by {adjust}{suffix}")
    else:
        click.echo(_run(ctx, speaker.get_volume))


@cli.command()
@click.argument('address')
@click.pass_context
def mute(ctx, address):
    """Mute a speaker"""
    speaker = _speaker(ctx, address)
    _run(ctx, speaker.mute)
    click.echo(f"Muted {speaker.room}")


@cli.command()
@click.argument('address')
@click.pass_context
def unmute(ctx, address):
    """Unmute a speaker"""
    speaker = _speaker(ctx, address)
    _run(ctx, speaker.unmute)
    click.echo(f"Unmuted {speaker.room}")


@cli.command()
@click.argument('address')
@click.pass_context
def muted(ctx, address):
    """Print whether a speaker is muted"""
    speaker = _speaker(ctx, address)
    click.echo("yes" if _run(ctx, speaker.is_muted) else "no")


def _parse_param(value: str) -> Tuple[str, str]:
    name, sep, raw = value.partition("=")
    if not sep or not name:
        raise click.BadParameter(f"expected Name=Value, got {value!r}")
    return name, raw


@cli.command()
@click.argument('address')
@click.argument('service')
@click.argument('action')
@click.option('--param', '-p', 'params', multiple=True, help='Action parameter as Name=Value')
@click.pass_context
def call(ctx, address, service, action, params):
    """
    Send a raw action once, e.g. call 10.0.0.5 rendering-control GetBass

    --retries does not apply to raw actions.
    """
    try:
        pairs = [_parse_param(p) for p in params]
    except click.BadParameter as e:
        raise click.UsageError(str(e))

    speaker = _speaker(ctx, address)
    result = _run_once(lambda: speaker.soap(service, action, pairs))
    if not result:
        click.echo("OK")
    for name, value in result.items():
        click.echo(f"{name}: {value}")


if __name__ == '__main__':
    cli()
