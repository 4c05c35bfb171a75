"""Typed REST clients for the NATS channel resources."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterator, Mapping, Optional, Union
from urllib.parse import urlencode

from natschannel.channels import (
    Channel,
    ChannelList,
    NatsJetStreamChannel,
    NatsJetStreamChannelList,
    NatssChannel,
    NatssChannelList,
)

JSON_CONTENT_TYPE = "application/json"
JSON_PATCH = "application/json-patch+json"
MERGE_PATCH = "application/merge-patch+json"
STRATEGIC_MERGE_PATCH = "application/strategic-merge-patch+json"
APPLY_PATCH = "application/apply-patch+yaml"

Options = Optional[Mapping[str, Any]]


class APIError(Exception):
    """The API server answered with a non-success status."""

    def __init__(self, status: int, reason: str = "", message: str = "") -> None:
        super().__init__(message or reason or f"the server responded with status {status}")
        self.status = status
        self.reason = reason
        self.message = message

    @classmethod
    def from_response(cls, response: Response) -> APIError:
        """Build an error from a response, reading a Status object if one is sent."""
        try:
            data = json.loads(response.body) if response.body else {}
        except ValueError:
            data = {}
        if isinstance(data, dict) and data.get("kind") == "Status":
            return cls(response.status, data.get("reason", ""), data.get("message", ""))
        text = response.body.decode("utf-8", "replace").strip()
        return cls(response.status, "", text)


@dataclass
class Response:
    """An HTTP response: status code, raw body and headers."""

    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)


Transport = Callable[
    [str, str, Mapping[str, str], Optional[bytes], Optional[str], Optional[float]], Response
]


class HttpTransport:
    """Sends requests to an API server over HTTP(S) with the standard library."""

    def __init__(
        self, host: str, user_agent: str = "natschannel", timeout: Optional[float] = None
    ) -> None:
        self.host = host.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout

    def __call__(
        self,
        method: str,
        path: str,
        params: Mapping[str, str],
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Response:
        url = self.host + path
        if params:
            url += "?" + urlencode(params)
        headers = {"Accept": JSON_CONTENT_TYPE, "User-Agent": self.user_agent}
        if content_type:
            headers["Content-Type"] = content_type
        request = urllib.request.Request(url, data=body, method=method, headers=headers)
        effective = timeout if timeout is not None else self.timeout
        try:
            with urllib.request.urlopen(request, timeout=effective) as reply:
                return Response(reply.status, reply.read(), dict(reply.headers))
        except urllib.error.HTTPError as err:
            with err:
                return Response(err.code, err.read(), dict(err.headers or {}))


@dataclass
class WatchEvent:
    """One change reported by a watch: ADDED, MODIFIED, DELETED or BOOKMARK."""

    type: str
    object: Channel


def _params(options: Options) -> dict[str, str]:
    result: dict[str, str] = {}
    for key, value in (options or {}).items():
        if value is None or value == "" or value is False:
            continue
        result[key] = "true" if value is True else str(value)
    return result


def _timeout(options: Options) -> Optional[float]:
    seconds = (options or {}).get("timeoutSeconds")
    return None if seconds is None else float(seconds)


def _check_segment(kind: str, value: str) -> None:
    if value == "":
        raise ValueError(f"{kind} may not be empty")
    if value in (".", "..") or "/" in value or "%" in value:
        raise ValueError(f"invalid {kind} {value!r}")


class ChannelClient:
    """Create, read, update, delete, list, watch and patch channels in one namespace."""

    resource_name: ClassVar[str] = ""
    channel_type: ClassVar[type[Channel]] = Channel
    list_type: ClassVar[type[ChannelList]] = ChannelList

    def __init__(self, transport: Transport, namespace: str = "", api_path: str = "/apis") -> None:
        self.transport = transport
        self.namespace = namespace
        self.api_path = api_path

    def _path(self, name: Optional[str] = None, subresources: tuple[str, ...] = ()) -> str:
        gv = self.channel_type.group_version
        parts = [self.api_path.rstrip("/"), gv.group, gv.version]
        if self.namespace:
            parts += ["namespaces", self.namespace]
        parts.append(self.resource_name)
        if name is not None:
            _check_segment("resource name", name)
            parts.append(name)
        for sub in subresources:
            _check_segment("subresource name", sub)
            parts.append(sub)
        return "/".join(parts)

    def _request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str],
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> bytes:
        response = self.transport(method, path, params, body, content_type, timeout)
        if not response.ok:
            raise APIError.from_response(response)
        return response.body

    def _decode(self, body: bytes) -> Channel:
        return self.channel_type.from_dict(json.loads(body))

    @staticmethod
    def _encode(value: Any) -> bytes:
        return json.dumps(value).encode("utf-8")

    def get(self, name: str, options: Options = None) -> Channel:
        """Fetch the channel called ``name``."""
        return self._decode(self._request("GET", self._path(name), _params(options)))

    def list(self, options: Options = None) -> ChannelList:
        """List the channels matching the selectors in ``options``."""
        body = self._request("GET", self._path(), _params(options), timeout=_timeout(options))
        return self.list_type.from_dict(json.loads(body))

    def watch(self, options: Options = None) -> Iterator[WatchEvent]:
        """Start a watch and return an iterator over its events."""
        params = _params({**(options or {}), "watch": True})
        body = self._request("GET", self._path(), params, timeout=_timeout(options))
        return self._events(body)

    def _events(self, body: bytes) -> Iterator[WatchEvent]:
        for line in body.splitlines():
            if not line.strip():
                continue
            event = json.loads(line)
            obj = event.get("object") or {}
            if event.get("type") == "ERROR":
                raise APIError(int(obj.get("code", 0)), obj.get("reason", ""), obj.get("message", ""))
            yield WatchEvent(event["type"], self.channel_type.from_dict(obj))

    def create(self, channel: Channel, options: Options = None) -> Channel:
        """Create ``channel`` and return the server's representation of it."""
        body = self._request(
            "POST", self._path(), _params(options), self._encode(channel.to_dict()), JSON_CONTENT_TYPE
        )
        return self._decode(body)

    def update(self, channel: Channel, options: Options = None) -> Channel:
        """Replace the stored channel with ``channel``."""
        body = self._request(
            "PUT",
            self._path(channel.metadata.name),
            _params(options),
            self._encode(channel.to_dict()),
            JSON_CONTENT_TYPE,
        )
        return self._decode(body)

    def update_status(self, channel: Channel, options: Options = None) -> Channel:
        """Replace the status subresource of the stored channel."""
        body = self._request(
            "PUT",
            self._path(channel.metadata.name, ("status",)),
            _params(options),
            self._encode(channel.to_dict()),
            JSON_CONTENT_TYPE,
        )
        return self._decode(body)

    def delete(self, name: str, options: Options = None) -> None:
        """Delete the channel called ``name``."""
        self._request(
            "DELETE", self._path(name), {}, self._encode(dict(options or {})), JSON_CONTENT_TYPE
        )

    def delete_collection(self, options: Options = None, list_options: Options = None) -> None:
        """Delete every channel matching ``list_options``."""
        self._request(
            "DELETE",
            self._path(),
            _params(list_options),
            self._encode(dict(options or {})),
            JSON_CONTENT_TYPE,
            _timeout(list_options),
        )

    def patch(
        self,
        name: str,
        patch_type: str,
        data: Union[bytes, str],
        options: Options = None,
        *subresources: str,
    ) -> Channel:
        """Apply a patch of content type ``patch_type`` and return the result."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        body = self._request(
            "PATCH", self._path(name, subresources), _params(options), payload, patch_type
        )
        return self._decode(body)


class NatssChannelClient(ChannelClient):
    """Client for NatssChannel resources."""

    resource_name: ClassVar[str] = "natsschannels"
    channel_type: ClassVar[type[Channel]] = NatssChannel
    list_type: ClassVar[type[ChannelList]] = NatssChannelList


class NatsJetStreamChannelClient(ChannelClient):
    """Client for NatsJetStreamChannel resources."""

    resource_name: ClassVar[str] = "natsjetstreamchannels"
    channel_type: ClassVar[type[Channel]] = NatsJetStreamChannel
    list_type: ClassVar[type[ChannelList]] = NatsJetStreamChannelList