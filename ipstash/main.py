"""Main entry point for ipstash."""

import logging
import sys
import time
from typing import Callable, ContextManager, Optional

import click
import redis

from ipstash.config import MODE_HISTORY, VALID_MODES, Config
from ipstash.errors import IPStashError
from ipstash.models.run_outcome import RunAction, RunOutcome
from ipstash.services.broker import open_redis
from ipstash.services.history import HistoryRecorder
from ipstash.services.logger import log_propagation, log_run_failure, setup_logging
from ipstash.services.publisher import ChannelPublisher
from ipstash.services.resolver import HTTPResolver, StaticResolver


logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, float], ContextManager[redis.Redis]]


def build_resolver(config: Config, static_ip: Optional[str] = None):
    """Return a StaticResolver for an injected literal, else an HTTPResolver."""
    if static_ip is not None:
        return StaticResolver(static_ip)
    return HTTPResolver(config.ip_fetch_url, timeout=config.fetch_timeout)


def run_once(
    config: Config,
    resolver,
    client_factory: ClientFactory = open_redis,
    now: Optional[int] = None,
) -> RunOutcome:
    """Run one detect-and-propagate cycle.

    Args:
        config: Loaded configuration.
        resolver: Object with a resolve() -> IPAddress method.
        client_factory: Context manager factory yielding a Redis client.
        now: Timestamp for history mode (defaults to current time).

    Returns:
        RunOutcome: What was done with the resolved IP.

    Raises:
        IPStashError: On any fetch, format, broker or config failure.
    """
    start = time.time()
    ip = resolver.resolve()

    if config.dry_run:
        logger.info(
            f"Dry run: IP address {ip} would be stored in Redis.",
            extra={"mode": config.mode, "target": config.propagation_target()},
        )
        outcome = RunOutcome(ip=ip.value, action=RunAction.DRY_RUN)
    else:
        with client_factory(config.redis_url, config.redis_timeout) as client:
            if config.mode == MODE_HISTORY:
                recorder = HistoryRecorder(client, config.history_key, config.history_max)
                size = recorder.record(ip, now)
                outcome = RunOutcome(
                    ip=ip.value,
                    action=RunAction.RECORDED,
                    target=config.history_key,
                    history_size=size,
                )
            else:
                publisher = ChannelPublisher(client, config.channel)
                receivers = publisher.publish(ip)
                outcome = RunOutcome(
                    ip=ip.value,
                    action=RunAction.PUBLISHED,
                    target=config.channel,
                    receivers=receivers,
                )

    outcome.duration_ms = int((time.time() - start) * 1000)
    log_propagation(outcome)
    return outcome


def execute(
    dry_run: bool = False,
    mode: Optional[str] = None,
    verbose: bool = False,
    static_ip: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
) -> int:
    """Load configuration, run once and map the result to an exit code.

    Returns:
        int: Exit code (0 for success, 1 for fatal error).
    """
    setup_logging(verbose)

    try:
        config = Config.from_env().with_overrides(dry_run=dry_run, mode=mode)
        if config.verbose and not verbose:
            setup_logging(True)

        if config.dry_run:
            logger.info("DRY_RUN mode enabled - nothing will be written to Redis")

        resolver = build_resolver(config, static_ip)
        try:
            run_once(config, resolver, client_factory=client_factory or open_redis)
        finally:
            resolver.close()
        return 0

    except IPStashError as e:
        log_run_failure(e)
        return 1

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


@click.group(invoke_without_command=True)
@click.option(
    "--dry-run",
    "-d",
    is_flag=True,
    default=False,
    help="Resolve the IP without storing it in Redis.",
)
@click.option(
    "--mode",
    type=click.Choice(VALID_MODES),
    default=None,
    help="Publish on a channel or record in the bounded history set.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, dry_run: bool, mode: Optional[str], verbose: bool) -> None:
    """Find this host's public IP address and send it to Redis.

    Consumers subscribe to the channel (or read the history set), for example
    to keep a cloud security group in sync with a host whose IP changes often.
    """
    ctx.ensure_object(dict)
    ctx.obj.update(dry_run=dry_run, mode=mode, verbose=verbose)
    if ctx.invoked_subcommand is None:
        ctx.exit(execute(dry_run=dry_run, mode=mode, verbose=verbose))


@cli.command("test")
@click.option("--ip", "-i", "ip", required=True, help="IP literal to propagate.")
@click.pass_context
def static_ip_command(ctx: click.Context, ip: str) -> None:
    """Propagate a given IP instead of fetching one (checks broker connectivity)."""
    ctx.exit(execute(static_ip=ip, **ctx.obj))


if __name__ == "__main__":
    sys.exit(cli())
