"""Run upsetter: python -m upsetter [--config FILE] [--refresh 20s] [--ttl 24h] [--url URL]"""

import asyncio
import signal
import sys

import click

from upsetter.agent import UpsetterAgent


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, shutdown: asyncio.Event):
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler.
            signal.signal(sig, lambda s, f: loop.call_soon_threadsafe(shutdown.set))


async def _serve(agent: UpsetterAgent):
    shutdown = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), shutdown)

    task = asyncio.create_task(agent.start())
    waiter = asyncio.create_task(shutdown.wait())
    done, _ = await asyncio.wait([task, waiter], return_when=asyncio.FIRST_COMPLETED)
    waiter.cancel()
    await agent.stop()
    if task in done:
        task.result()
    else:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


@click.command()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="JSON config file")
@click.option("--refresh", help="Refresh period, e.g. 20s")
@click.option("--ttl", help="Group TTL, e.g. 24h; 0 disables expiry")
@click.option("--url", help="Pushgateway URL")
def main(config_path, refresh, ttl, url):
    """Poll a Pushgateway and push an up gauge for every job/instance group."""
    try:
        agent = UpsetterAgent(
            config_path=config_path,
            overrides={"refresh": refresh, "ttl": ttl, "url": url},
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    try:
        asyncio.run(_serve(agent))
    except KeyboardInterrupt:
        print("\nupsetter shutting down...", file=sys.stderr)


if __name__ == "__main__":
    main()
