"""Clients for the messaging API group, built from a connection config."""

from __future__ import annotations

import platform
import sys
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional

from natschannel.meta import V1ALPHA1, V1BETA1, GroupVersion
from natschannel.typed import (
    HttpTransport,
    NatsJetStreamChannelClient,
    NatssChannelClient,
    Response,
    Transport,
)

API_PATH = "/apis"


def _default_user_agent() -> str:
    machine = platform.machine() or "unknown"
    return f"natschannel ({sys.platform}/{machine})"


class TokenBucketRateLimiter:
    """Token bucket that refills at ``qps`` tokens per second up to ``burst``.

    The bucket starts full. ``accept`` blocks until a token is available;
    ``try_accept`` takes a token only if one is available right now.
    """

    def __init__(
        self, qps: float, burst: int, clock: Optional[Callable[[], float]] = None
    ) -> None:
        if qps <= 0:
            raise ValueError("qps must be greater than 0")
        if burst <= 0:
            raise ValueError("burst must be greater than 0")
        self.qps = float(qps)
        self.burst = int(burst)
        self._clock = clock or time.monotonic
        self._tokens = float(self.burst)
        self._last = self._clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last)
        self._last = now
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.qps)

    def try_accept(self) -> bool:
        """Take a token if one is available; never blocks."""
        with self._lock:
            self._refill()
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def accept(self) -> None:
        """Take a token, sleeping until the bucket has one."""
        with self._lock:
            self._refill()
            self._tokens -= 1.0
            wait = -self._tokens / self.qps if self._tokens < 0 else 0.0
        if wait > 0:
            time.sleep(wait)


@dataclass
class Config:
    """How to reach the API server and how to pace requests to it."""

    host: str = ""
    api_path: str = ""
    group_version: Optional[GroupVersion] = None
    user_agent: str = ""
    qps: float = 0.0
    burst: int = 0
    rate_limiter: Optional[TokenBucketRateLimiter] = None
    timeout: Optional[float] = None
    transport: Optional[Transport] = None


class _RateLimitedTransport:
    """Waits on a rate limiter before handing each request on."""

    def __init__(self, inner: Transport, limiter: TokenBucketRateLimiter) -> None:
        self.inner = inner
        self.limiter = limiter

    def __call__(
        self,
        method: str,
        path: str,
        params: Mapping[str, str],
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Response:
        self.limiter.accept()
        return self.inner(method, path, params, body, content_type, timeout)


def _with_rate_limiter(config: Config) -> Config:
    if config.rate_limiter is None and config.qps > 0:
        if config.burst <= 0:
            raise ValueError(
                "burst is required to be greater than 0 when RateLimiter is not set "
                "and QPS is set to greater than 0"
            )
        return replace(config, rate_limiter=TokenBucketRateLimiter(config.qps, config.burst))
    return config


def _transport_for(config: Config) -> Transport:
    if config.transport is not None:
        transport = config.transport
    else:
        if not config.host:
            raise ValueError("host must be set when no transport is given")
        user_agent = config.user_agent or _default_user_agent()
        transport = HttpTransport(config.host, user_agent, config.timeout)
    if config.rate_limiter is not None:
        transport = _RateLimitedTransport(transport, config.rate_limiter)
    return transport


def set_config_defaults(config: Config, group_version: GroupVersion) -> Config:
    """Return a copy of ``config`` aimed at ``group_version`` under ``/apis``."""
    return replace(
        config,
        group_version=group_version,
        api_path=API_PATH,
        user_agent=config.user_agent or _default_user_agent(),
    )


class MessagingV1beta1Client:
    """Client for the v1beta1 version of the messaging group."""

    group_version = V1BETA1

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def natss_channels(self, namespace: str) -> NatssChannelClient:
        """Client for NatssChannels in ``namespace``."""
        return NatssChannelClient(self.transport, namespace, API_PATH)

    @classmethod
    def from_config(cls, config: Config) -> MessagingV1beta1Client:
        config = _with_rate_limiter(set_config_defaults(config, cls.group_version))
        return cls(_transport_for(config))


class MessagingV1alpha1Client:
    """Client for the v1alpha1 version of the messaging group."""

    group_version = V1ALPHA1

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def nats_jet_stream_channels(self, namespace: str) -> NatsJetStreamChannelClient:
        """Client for NatsJetStreamChannels in ``namespace``."""
        return NatsJetStreamChannelClient(self.transport, namespace, API_PATH)

    @classmethod
    def from_config(cls, config: Config) -> MessagingV1alpha1Client:
        config = _with_rate_limiter(set_config_defaults(config, cls.group_version))
        return cls(_transport_for(config))


class Clientset:
    """One client for each version of the messaging group, sharing a transport."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._v1beta1 = MessagingV1beta1Client(transport)
        self._v1alpha1 = MessagingV1alpha1Client(transport)

    def messaging_v1beta1(self) -> MessagingV1beta1Client:
        return self._v1beta1

    def messaging_v1alpha1(self) -> MessagingV1alpha1Client:
        return self._v1alpha1


def new_for_config(config: Config) -> Clientset:
    """Build a clientset whose clients share one, possibly rate-limited, transport.

    Raises ValueError when QPS is set without a positive burst and no limiter.
    """
    config = _with_rate_limiter(replace(config))
    if not config.user_agent:
        config = replace(config, user_agent=_default_user_agent())
    return Clientset(_transport_for(config))