"""Per-tick reconciliation of observed groups against tracked liveness state."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from upsetter.shared.logger import get_logger
from upsetter.tracking.state import GroupState, utcnow


class ActionType(Enum):
    PUSH = "PUSH"
    DELETE = "DELETE"
    REMOVE = "REMOVE"


@dataclass
class Action:
    action_type: ActionType
    key: str
    up: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"action_type": self.action_type.value, "key": self.key, "up": self.up}


@dataclass(frozen=True)
class Observation:
    """One group as seen in a single snapshot.

    ``timestamp`` is the heartbeat timestamp fed to the group state,
    ``last_activity`` the freshest timestamp of any metric in the group.
    """

    key: str | None
    label_names: frozenset[str]
    timestamp: datetime | None
    last_activity: datetime | None


class Reconciler:
    """Owns the key -> GroupState mapping and turns snapshots into actions."""

    def __init__(
        self,
        primary_label: str = "job",
        instance_label: str = "instance",
        ttl: timedelta | None = None,
        logger: logging.Logger | None = None,
    ):
        self._label_names = frozenset((primary_label, instance_label))
        self._ttl = ttl
        self._states: dict[str, GroupState] = {}
        self.logger = logger or get_logger("reconciler")

    @property
    def states(self) -> Mapping[str, GroupState]:
        return MappingProxyType(self._states)

    def tick(self, observations: Iterable[Observation], now: datetime | None = None) -> list[Action]:
        """Process one snapshot and return the actions needed to converge."""
        if now is None:
            now = utcnow()
        expiration = now - self._ttl if self._ttl else None
        received: set[str] = set()
        actions: list[Action] = []

        for obs in observations:
            if obs.key is None or obs.label_names != self._label_names:
                continue

            key = obs.key
            received.add(key)

            state = self._states.get(key)
            if state is None:
                self._states[key] = GroupState(obs.timestamp)
                self.logger.info(f"Group added: {key}", extra={"group_key": key})
                continue

            if expiration is not None and (obs.last_activity is None or obs.last_activity < expiration):
                del self._states[key]
                self.logger.info(f"Group expired: {key}", extra={"group_key": key})
                actions.append(Action(ActionType.DELETE, key))
                continue

            if state.update(obs.timestamp, now):
                self.logger.info(
                    f"Group {'up' if state.up else 'down'}: {key}",
                    extra={"group_key": key, "event_data": state.to_dict(now)},
                )
                actions.append(Action(ActionType.PUSH, key, up=state.up))

        for key in [k for k in self._states if k not in received]:
            del self._states[key]
            self.logger.info(f"Group removed: {key}", extra={"group_key": key})
            actions.append(Action(ActionType.REMOVE, key))

        return actions

    def status(self, now: datetime | None = None) -> dict[str, dict]:
        """Current verdict and timing of every tracked group."""
        if now is None:
            now = utcnow()
        return {key: state.to_dict(now) for key, state in self._states.items()}
