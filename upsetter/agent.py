"""upsetter agent: polls the Pushgateway and pushes an up gauge per group."""

import asyncio
from typing import Any

import httpx

from upsetter.pushgateway import Pushgateway, PushgatewayError
from upsetter.shared.bus import RedisBus
from upsetter.shared.config import DEFAULT_CONFIG, load_config, parse_duration
from upsetter.shared.logger import get_logger
from upsetter.tracking.reconciler import Action, ActionType, Reconciler

EVENTS_CHANNEL = "upsetter/events"


class UpsetterAgent:
    """Runs one reconcile tick per refresh period until stopped."""

    def __init__(self, config_path: str | None = None, overrides: dict[str, Any] | None = None):
        self.name = "upsetter"
        self.config = dict(DEFAULT_CONFIG)
        if config_path:
            self.config = load_config(config_path, defaults=self.config)
        if overrides:
            self.config.update({k: v for k, v in overrides.items() if v is not None})

        self.logger = get_logger("agent", log_file=self.config["log_file"])
        self._refresh = parse_duration(self.config["refresh"])
        if self._refresh is None:
            raise ValueError("Refresh period must be positive")
        timeout = parse_duration(self.config["request_timeout"])
        self._ignored = tuple(self.config["ignored_metrics"])
        self._primary = self.config["primary_label"]

        self.client = Pushgateway(
            base_url=self.config["url"],
            timeout=timeout.total_seconds() if timeout else None,
            primary_label=self._primary,
        )
        self.reconciler = Reconciler(
            primary_label=self._primary,
            instance_label=self.config["instance_label"],
            ttl=parse_duration(self.config["ttl"]),
            logger=get_logger("reconciler", log_file=self.config["log_file"]),
        )
        self.bus = RedisBus(redis_url=self.config["redis_url"]) if self.config["redis_url"] else None
        self._running = False

    async def start(self):
        """Connect the event bus if configured, then run the polling loop."""
        if self.bus:
            await self.bus.connect()
        self._running = True
        self.logger.info(f"Agent {self.name} started, polling {self.config['url']}")
        await self.run()

    async def stop(self):
        """Graceful shutdown."""
        self._running = False
        if self.bus:
            await self.bus.disconnect()
        self.logger.info(f"Agent {self.name} stopped")

    async def run(self):
        """Main polling loop."""
        loop = asyncio.get_running_loop()
        period = self._refresh.total_seconds()
        next_tick = loop.time()
        while self._running:
            try:
                await self.reconcile()
            except Exception as e:
                self.logger.error(f"Reconcile cycle failed: {e}")
            # Fixed cadence; ticks that overrun the period are not made up.
            next_tick += period
            now = loop.time()
            if next_tick < now:
                next_tick = now
            await asyncio.sleep(next_tick - now)

    async def reconcile(self) -> list[Action]:
        """Run a single tick: fetch, reconcile, execute the resulting actions."""
        try:
            groups = await self.client.query_metrics()
        except (httpx.HTTPError, PushgatewayError) as e:
            self.logger.error(f"Error querying metrics: {e}")
            return []

        observations = [g.observe(self._primary, self._ignored) for g in groups]
        actions = self.reconciler.tick(observations)
        for action in actions:
            await self._execute(action)
        return actions

    async def _execute(self, action: Action):
        ok = True
        try:
            if action.action_type == ActionType.PUSH:
                await self.client.upset(action.key, action.up)
            elif action.action_type == ActionType.DELETE:
                await self.client.delete(action.key)
        except (httpx.HTTPError, PushgatewayError) as e:
            ok = False
            verb = "upsetting" if action.action_type == ActionType.PUSH else "deleting"
            self.logger.error(
                f"Error {verb} {action.key}: {e}",
                extra={"group_key": action.key, "event_data": action.to_dict()},
            )
        await self._publish(action, ok)

    async def _publish(self, action: Action, ok: bool):
        if not self.bus:
            return
        try:
            await self.bus.publish(EVENTS_CHANNEL, {**action.to_dict(), "ok": ok}, sender=self.name)
        except Exception as e:
            self.logger.error(f"Event publish failed: {e}")
