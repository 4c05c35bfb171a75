"""Readiness conditions and status transitions shared by NATS channel kinds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from natschannel.conditions import (
    CONDITION_READY,
    Condition,
    ConditionManager,
    ConditionStatus,
    Status,
    new_living_condition_set,
)
from natschannel.meta import (
    DEPLOYMENT_AVAILABLE,
    URL,
    Addressable,
    DeploymentStatus,
    SubscriberSpec,
)

# True when every dependent condition below is True.
CONDITION_READY_TYPE = CONDITION_READY
# True when the dispatcher deployment reports the Available condition.
CONDITION_DISPATCHER_READY = "DispatcherReady"
# True once the backing service exists.
CONDITION_SERVICE_READY = "ServiceReady"
# True when the service endpoints are backed by at least one endpoint.
CONDITION_ENDPOINTS_READY = "EndpointsReady"
# True when the channel has a non-empty address.
CONDITION_ADDRESSABLE = "Addressable"
# True when the service representing the channel is ready.
CONDITION_CHANNEL_SERVICE_READY = "ChannelServiceReady"

CONDITION_SET = new_living_condition_set(
    CONDITION_DISPATCHER_READY,
    CONDITION_SERVICE_READY,
    CONDITION_ENDPOINTS_READY,
    CONDITION_ADDRESSABLE,
    CONDITION_CHANNEL_SERVICE_READY,
)


@dataclass
class ChannelStatus(Status):
    """Observed state of a channel: conditions, address and subscriber statuses."""

    address: Optional[Addressable] = None
    subscribers: list[SubscriberSpec] = field(default_factory=list)
    dead_letter_sink_uri: Optional[URL] = None

    def _manager(self) -> ConditionManager:
        return CONDITION_SET.manage(self)

    def get_condition(self, condition_type: str) -> Optional[Condition]:
        """Return the condition of the given type, or ``None``."""
        return self._manager().get_condition(condition_type)

    def is_ready(self) -> bool:
        """True when the channel is ready overall."""
        return self._manager().is_happy()

    def initialize_conditions(self) -> None:
        """Set every unset condition to Unknown."""
        self._manager().initialize_conditions()

    def set_address(self, url: Optional[URL]) -> None:
        """Record the channel address and mark the Addressable condition."""
        self.address = Addressable(url=url)
        if url is not None:
            self._manager().mark_true(CONDITION_ADDRESSABLE)
        else:
            self._manager().mark_false(
                CONDITION_ADDRESSABLE, "emptyHostname", "hostname is the empty string"
            )

    def mark_dispatcher_failed(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager().mark_false(CONDITION_DISPATCHER_READY, reason, message_format, *args)

    def propagate_dispatcher_status(self, deployment_status: DeploymentStatus) -> None:
        """Derive DispatcherReady from the deployment's Available condition."""
        for cond in deployment_status.conditions:
            if cond.type != DEPLOYMENT_AVAILABLE:
                continue
            if cond.status != ConditionStatus.TRUE:
                self.mark_dispatcher_failed(
                    "DispatcherNotReady",
                    "Dispatcher Deployment is not ready: %s : %s",
                    cond.reason,
                    cond.message,
                )
            else:
                self._manager().mark_true(CONDITION_DISPATCHER_READY)

    def mark_service_failed(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager().mark_false(CONDITION_SERVICE_READY, reason, message_format, *args)

    def mark_service_true(self) -> None:
        self._manager().mark_true(CONDITION_SERVICE_READY)

    def mark_channel_service_failed(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager().mark_false(CONDITION_CHANNEL_SERVICE_READY, reason, message_format, *args)

    def mark_channel_service_true(self) -> None:
        self._manager().mark_true(CONDITION_CHANNEL_SERVICE_READY)

    def mark_endpoints_failed(self, reason: str, message_format: str, *args: Any) -> None:
        self._manager().mark_false(CONDITION_ENDPOINTS_READY, reason, message_format, *args)

    def mark_endpoints_true(self) -> None:
        self._manager().mark_true(CONDITION_ENDPOINTS_READY)


@dataclass
class NatssChannelStatus(ChannelStatus):
    """Status of a NATS Streaming channel."""


@dataclass
class NatsJetStreamChannelStatus(ChannelStatus):
    """Status of a NATS JetStream channel."""