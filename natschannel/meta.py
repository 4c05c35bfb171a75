"""API group identifiers and the shared object types used by channels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from natschannel.conditions import ConditionStatus

GROUP_NAME = "messaging.knative.dev"
DEPLOYMENT_AVAILABLE = "Available"


@dataclass(frozen=True)
class GroupKind:
    group: str
    kind: str


@dataclass(frozen=True)
class GroupResource:
    group: str
    resource: str


@dataclass(frozen=True)
class GroupVersionKind:
    group: str
    version: str
    kind: str

    def group_kind(self) -> GroupKind:
        return GroupKind(self.group, self.kind)


@dataclass(frozen=True)
class GroupVersionResource:
    group: str
    version: str
    resource: str

    def group_resource(self) -> GroupResource:
        return GroupResource(self.group, self.resource)


@dataclass(frozen=True)
class GroupVersion:
    group: str
    version: str

    def with_kind(self, kind: str) -> GroupVersionKind:
        return GroupVersionKind(self.group, self.version, kind)

    def with_resource(self, resource: str) -> GroupVersionResource:
        return GroupVersionResource(self.group, self.version, resource)

    def __str__(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


V1ALPHA1 = GroupVersion(GROUP_NAME, "v1alpha1")
V1BETA1 = GroupVersion(GROUP_NAME, "v1beta1")


@dataclass(frozen=True)
class URL:
    """An absolute or relative URL split into its parts."""

    scheme: str = ""
    host: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""
    user: str = ""

    def __str__(self) -> str:
        text = f"{self.scheme}:" if self.scheme else ""
        if self.scheme or self.host or self.user:
            if self.host or self.path or self.user:
                text += "//"
            if self.user:
                text += self.user + "@"
            text += self.host
        path = self.path
        if path and not path.startswith("/") and self.host:
            path = "/" + path
        text += path
        if self.query:
            text += "?" + self.query
        if self.fragment:
            text += "#" + self.fragment
        return text


def parse_url(text: str) -> Optional[URL]:
    """Parse ``text`` into a URL; an empty string yields ``None``.

    Raises ValueError when the port is not a number.
    """
    if text == "":
        return None
    parts = urlsplit(text)
    parts.port  # validates the port
    user, _, host = parts.netloc.rpartition("@")
    return URL(
        scheme=parts.scheme,
        host=host,
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
        user=user,
    )


@dataclass
class ObjectMeta:
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    generation: int = 0
    resource_version: str = ""
    uid: str = ""


@dataclass
class Addressable:
    url: Optional[URL] = None


@dataclass
class SubscriberSpec:
    uid: str = ""
    generation: int = 0
    subscriber_uri: Optional[URL] = None
    reply_uri: Optional[URL] = None


@dataclass
class ChannelableSpec:
    subscribers: list[SubscriberSpec] = field(default_factory=list)
    delivery: Optional[dict] = None


@dataclass
class DeploymentCondition:
    type: str
    status: ConditionStatus
    reason: str = ""
    message: str = ""


@dataclass
class DeploymentStatus:
    conditions: list[DeploymentCondition] = field(default_factory=list)