"""NATS channel resources: specs, defaulting, validation and serialisation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Union

from natschannel.conditions import Condition, ConditionSet, ConditionStatus, Status
from natschannel.errors import FieldError, combine, err_invalid_value, err_missing_field
from natschannel.lifecycle import (
    CONDITION_SET,
    ChannelStatus,
    NatsJetStreamChannelStatus,
    NatssChannelStatus,
)
from natschannel.meta import (
    URL,
    V1ALPHA1,
    V1BETA1,
    Addressable,
    ChannelableSpec,
    GroupKind,
    GroupResource,
    GroupVersion,
    GroupVersionKind,
    ObjectMeta,
    SubscriberSpec,
    parse_url,
)

SUBSCRIBABLE_DUCK_VERSION_ANNOTATION = "messaging.knative.dev/subscribable"
SCOPE_ANNOTATION_KEY = "eventing.knative.dev/scope"
SCOPE_NAMESPACE = "namespace"
SCOPE_CLUSTER = "cluster"

_MISSING_SUBSCRIBER_DETAILS = "expected at least one of, got none"
_INVALID_SCOPE_DETAILS = "expected either 'cluster' or 'namespace'"

_VERSIONS = {V1ALPHA1.version: V1ALPHA1, V1BETA1.version: V1BETA1}


def _group_version(version: Union[GroupVersion, str]) -> GroupVersion:
    if isinstance(version, GroupVersion):
        return version
    try:
        return _VERSIONS[version]
    except KeyError:
        raise ValueError(f"unknown API version: {version!r}") from None


def kind(version: Union[GroupVersion, str], kind_name: str) -> GroupKind:
    """Qualify an unqualified kind with the group of ``version``."""
    return _group_version(version).with_kind(kind_name).group_kind()


def resource(version: Union[GroupVersion, str], resource_name: str) -> GroupResource:
    """Qualify an unqualified resource with the group of ``version``."""
    return _group_version(version).with_resource(resource_name).group_resource()


# ---------------------------------------------------------------- serialisation


def _prune(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v not in (None, "", 0, [], {})}


def _url_to(url: Optional[URL]) -> Optional[str]:
    return None if url is None else str(url)


def _url_from(text: Optional[str]) -> Optional[URL]:
    return parse_url(text) if text else None


def _time_to(moment: Optional[datetime]) -> Optional[str]:
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _time_from(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    return datetime.fromisoformat(text.replace("Z", "+00:00")).astimezone(timezone.utc)


def _meta_to_dict(meta: ObjectMeta) -> dict[str, Any]:
    return _prune(
        {
            "name": meta.name,
            "namespace": meta.namespace,
            "labels": dict(meta.labels),
            "annotations": dict(meta.annotations),
            "generation": meta.generation,
            "resourceVersion": meta.resource_version,
            "uid": meta.uid,
        }
    )


def _meta_from_dict(data: dict[str, Any]) -> ObjectMeta:
    return ObjectMeta(
        name=data.get("name", ""),
        namespace=data.get("namespace", ""),
        labels=dict(data.get("labels") or {}),
        annotations=dict(data.get("annotations") or {}),
        generation=int(data.get("generation", 0)),
        resource_version=data.get("resourceVersion", ""),
        uid=data.get("uid", ""),
    )


def _subscriber_to_dict(sub: SubscriberSpec) -> dict[str, Any]:
    return _prune(
        {
            "uid": sub.uid,
            "generation": sub.generation,
            "subscriberUri": _url_to(sub.subscriber_uri),
            "replyUri": _url_to(sub.reply_uri),
        }
    )


def _subscriber_from_dict(data: dict[str, Any]) -> SubscriberSpec:
    return SubscriberSpec(
        uid=data.get("uid", ""),
        generation=int(data.get("generation", 0)),
        subscriber_uri=_url_from(data.get("subscriberUri")),
        reply_uri=_url_from(data.get("replyUri")),
    )


def _condition_to_dict(cond: Condition) -> dict[str, Any]:
    return _prune(
        {
            "type": cond.type,
            "status": ConditionStatus(cond.status).value,
            "severity": cond.severity,
            "lastTransitionTime": _time_to(cond.last_transition_time),
            "reason": cond.reason,
            "message": cond.message,
        }
    )


def _condition_from_dict(data: dict[str, Any]) -> Condition:
    return Condition(
        type=data["type"],
        status=ConditionStatus(data["status"]),
        severity=data.get("severity", ""),
        last_transition_time=_time_from(data.get("lastTransitionTime")),
        reason=data.get("reason", ""),
        message=data.get("message", ""),
    )


def _status_to_dict(status: ChannelStatus) -> dict[str, Any]:
    result = _prune(
        {
            "observedGeneration": status.observed_generation,
            "conditions": [_condition_to_dict(c) for c in status.conditions],
            "annotations": dict(status.annotations),
            "subscribers": [_subscriber_to_dict(s) for s in status.subscribers],
            "deadLetterSinkUri": _url_to(status.dead_letter_sink_uri),
        }
    )
    if status.address is not None:
        result["address"] = _prune({"url": _url_to(status.address.url)})
    return result


def _status_from_dict(status_type: type[ChannelStatus], data: dict[str, Any]) -> ChannelStatus:
    address_data = data.get("address")
    address = None
    if address_data is not None:
        address = Addressable(url=_url_from(address_data.get("url")))
    return status_type(
        observed_generation=int(data.get("observedGeneration", 0)),
        conditions=[_condition_from_dict(c) for c in data.get("conditions") or []],
        annotations=dict(data.get("annotations") or {}),
        address=address,
        subscribers=[_subscriber_from_dict(s) for s in data.get("subscribers") or []],
        dead_letter_sink_uri=_url_from(data.get("deadLetterSinkUri")),
    )


# ---------------------------------------------------------------- specs


@dataclass
class ChannelSpec(ChannelableSpec):
    """Desired state of a channel: its subscribers and delivery options."""

    def set_defaults(self) -> None:
        """Normalise the subscribers to a list; no field takes a default value."""
        self.subscribers = list(self.subscribers or [])

    def validate(self) -> Optional[FieldError]:
        """Every subscriber needs a subscriber URI or a reply URI."""
        errs: Optional[FieldError] = None
        for index, subscriber in enumerate(self.subscribers):
            if subscriber.reply_uri is None and subscriber.subscriber_uri is None:
                missing = err_missing_field("replyURI", "subscriberURI")
                missing.details = _MISSING_SUBSCRIBER_DETAILS
                errs = combine(
                    errs, missing.via_field(f"subscriber[{index}]").via_field("subscribable")
                )
        return errs

    def _to_dict(self) -> dict[str, Any]:
        return _prune(
            {
                "subscribers": [_subscriber_to_dict(s) for s in self.subscribers],
                "delivery": self.delivery,
            }
        )

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> ChannelSpec:
        return cls(
            subscribers=[_subscriber_from_dict(s) for s in data.get("subscribers") or []],
            delivery=data.get("delivery"),
        )


@dataclass
class NatssChannelSpec(ChannelSpec):
    """Spec of a NATS Streaming channel."""


@dataclass
class NatsJetStreamChannelSpec(ChannelSpec):
    """Spec of a NATS JetStream channel."""


# ---------------------------------------------------------------- resources


@dataclass
class Channel:
    """A channel resource: metadata, desired spec and observed status."""

    kind_name: ClassVar[str] = "Channel"
    group_version: ClassVar[GroupVersion] = V1BETA1
    spec_type: ClassVar[type[ChannelSpec]] = ChannelSpec
    status_type: ClassVar[type[ChannelStatus]] = ChannelStatus

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: Optional[ChannelSpec] = None
    status: Optional[ChannelStatus] = None

    def __post_init__(self) -> None:
        if self.spec is None:
            self.spec = self.spec_type()
        if self.status is None:
            self.status = self.status_type()

    def set_defaults(self) -> None:
        """Pin the subscribable duck version annotation to ``v1`` if unset."""
        self.metadata.annotations.setdefault(SUBSCRIBABLE_DUCK_VERSION_ANNOTATION, "v1")
        self.spec.set_defaults()

    def validate(self) -> Optional[FieldError]:
        """Validate the spec and the scope annotation; ``None`` when valid."""
        spec_errors = self.spec.validate()
        errs = spec_errors.via_field("spec") if spec_errors is not None else None
        scope = self.metadata.annotations.get(SCOPE_ANNOTATION_KEY)
        if scope is not None and scope not in (SCOPE_NAMESPACE, SCOPE_CLUSTER):
            invalid = err_invalid_value(scope, "")
            invalid.details = _INVALID_SCOPE_DETAILS
            errs = combine(
                errs,
                invalid.via_field_key("annotations", SCOPE_ANNOTATION_KEY).via_field("metadata"),
            )
        return errs

    def get_group_version_kind(self) -> GroupVersionKind:
        return self.group_version.with_kind(self.kind_name)

    def get_status(self) -> Status:
        """The duck status of the resource."""
        return self.status

    def get_condition_set(self) -> ConditionSet:
        return CONDITION_SET

    def get_untyped_spec(self) -> ChannelSpec:
        return self.spec

    def to_dict(self) -> dict[str, Any]:
        """Render the resource as its JSON-compatible API representation."""
        return {
            "apiVersion": str(self.group_version),
            "kind": self.kind_name,
            "metadata": _meta_to_dict(self.metadata),
            "spec": self.spec._to_dict(),
            "status": _status_to_dict(self.status),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Channel:
        """Build a resource from its API representation.

        Raises ValueError when ``kind`` or ``apiVersion`` name another type.
        """
        found_kind = data.get("kind")
        if found_kind is not None and found_kind != cls.kind_name:
            raise ValueError(f"expected kind {cls.kind_name!r}, got {found_kind!r}")
        found_version = data.get("apiVersion")
        if found_version is not None and found_version != str(cls.group_version):
            raise ValueError(
                f"expected apiVersion {str(cls.group_version)!r}, got {found_version!r}"
            )
        return cls(
            metadata=_meta_from_dict(data.get("metadata") or {}),
            spec=cls.spec_type._from_dict(data.get("spec") or {}),
            status=_status_from_dict(cls.status_type, data.get("status") or {}),
        )


@dataclass
class NatssChannel(Channel):
    """A NATS Streaming channel."""

    kind_name: ClassVar[str] = "NatssChannel"
    group_version: ClassVar[GroupVersion] = V1BETA1
    spec_type: ClassVar[type[ChannelSpec]] = NatssChannelSpec
    status_type: ClassVar[type[ChannelStatus]] = NatssChannelStatus


@dataclass
class NatsJetStreamChannel(Channel):
    """A NATS JetStream channel."""

    kind_name: ClassVar[str] = "NatsJetStreamChannel"
    group_version: ClassVar[GroupVersion] = V1ALPHA1
    spec_type: ClassVar[type[ChannelSpec]] = NatsJetStreamChannelSpec
    status_type: ClassVar[type[ChannelStatus]] = NatsJetStreamChannelStatus


@dataclass
class ChannelList:
    """A collection of channel resources."""

    item_type: ClassVar[type[Channel]] = Channel

    items: list[Channel] = field(default_factory=list)
    resource_version: str = ""
    continue_token: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "apiVersion": str(self.item_type.group_version),
            "kind": f"{self.item_type.kind_name}List",
            "metadata": _prune(
                {"resourceVersion": self.resource_version, "continue": self.continue_token}
            ),
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChannelList:
        """Build a list from its API representation; items are typed by the list."""
        expected = f"{cls.item_type.kind_name}List"
        found_kind = data.get("kind")
        if found_kind is not None and found_kind != expected:
            raise ValueError(f"expected kind {expected!r}, got {found_kind!r}")
        meta = data.get("metadata") or {}
        return cls(
            items=[cls.item_type.from_dict(item) for item in data.get("items") or []],
            resource_version=meta.get("resourceVersion", ""),
            continue_token=meta.get("continue", ""),
        )


@dataclass
class NatssChannelList(ChannelList):
    item_type: ClassVar[type[Channel]] = NatssChannel


@dataclass
class NatsJetStreamChannelList(ChannelList):
    item_type: ClassVar[type[Channel]] = NatsJetStreamChannel