# natschannel

`natschannel` models NATS-backed messaging channels as Kubernetes custom
resources in the `messaging.knative.dev` API group. There are two kinds:

- `NatssChannel`, version `v1beta1`, for NATS Streaming
- `NatsJetStreamChannel`, version `v1alpha1`, for NATS JetStream

The package uses only the standard library. It provides:

- `natschannel.channels`: resource, spec and list types, with defaulting,
  validation and conversion to and from dicts
- `natschannel.lifecycle`: readiness conditions for channel status
- `natschannel.conditions`: the general condition machinery (`Condition`,
  `ConditionSet`, `ConditionManager`, `new_living_condition_set`)
- `natschannel.errors`: `FieldError`, a validation error that carries field paths
- `natschannel.meta`: group/version/kind identifiers, `URL` and `parse_url`,
  and the shared object types
- `natschannel.typed` and `natschannel.clientset`: REST clients for an API server

## Installation

```
pip install natschannel
```

To run the tests:

```
pip install "natschannel[test]"
pytest
```

## Resources, defaults and validation

```python
from natschannel.channels import NatssChannel
from natschannel.meta import SubscriberSpec

channel = NatssChannel()
channel.set_defaults()   # sets messaging.knative.dev/subscribable to "v1" if it is missing
print(channel.get_group_version_kind())

channel.spec.subscribers.append(SubscriberSpec())
error = channel.validate()
if error is not None:
    print(error)   # missing field(s): spec.subscribable.subscriber[0].replyURI, ...
```

`validate()` does not raise. It returns `None` when the resource is valid, and
otherwise a `FieldError`, which is a `ValueError` subclass, listing every
problem with its full field path. Validation checks two things:

- every subscriber has a subscriber URI or a reply URI
- the `eventing.knative.dev/scope` annotation, if present, is `cluster` or
  `namespace`

`Channel.to_dict()` and `Channel.from_dict()` convert to and from the JSON API
representation. `from_dict` raises `ValueError` when `kind` or `apiVersion`
names a different type. `NatssChannelList` and `NatsJetStreamChannelList` do
the same for lists. `kind(version, name)` and `resource(version, name)` qualify
a name with the API group. `version` can be `"v1alpha1"`, `"v1beta1"` or a
`GroupVersion`.

## Status lifecycle

A channel is ready when all five dependent conditions are true:
`DispatcherReady`, `ServiceReady`, `EndpointsReady`, `Addressable` and
`ChannelServiceReady`.

```python
from natschannel.conditions import ConditionStatus
from natschannel.lifecycle import NatssChannelStatus
from natschannel.meta import URL, DeploymentCondition, DeploymentStatus

status = NatssChannelStatus()
status.initialize_conditions()
status.mark_service_true()
status.mark_channel_service_true()
status.mark_endpoints_true()
status.set_address(URL(scheme="http", host="foo.bar"))
status.propagate_dispatcher_status(
    DeploymentStatus(conditions=[DeploymentCondition(type="Available", status=ConditionStatus.TRUE)])
)
assert status.is_ready()
```

Calling `set_address(None)` marks `Addressable` false with reason
`emptyHostname`. Marking any dependent condition false also marks `Ready` false.

## Talking to an API server

```python
from natschannel.clientset import Config, new_for_config

clients = new_for_config(Config(host="https://cluster.example.com", qps=5, burst=10))
channels = clients.messaging_v1beta1().natss_channels("default")

for item in channels.list().items:
    print(item.metadata.name)
```

`NatssChannelClient` and `NatsJetStreamChannelClient` offer these methods:
`get`, `list`, `watch`, `create`, `update`, `update_status`, `delete`,
`delete_collection` and `patch`. Options are plain mappings sent as query
parameters. For example, `{"labelSelector": "app=x", "timeoutSeconds": 30}`.

- `patch` takes a content type as its second argument, such as
  `natschannel.typed.MERGE_PATCH`, `JSON_PATCH` or `STRATEGIC_MERGE_PATCH`.
- `watch` reads the whole response and then yields `WatchEvent` objects, one
  per line. It does not stream events as they arrive.
- A non-2xx response, or a watch `ERROR` event, raises
  `natschannel.typed.APIError`.

When `qps` is positive and no `rate_limiter` is given, requests are paced by a
`TokenBucketRateLimiter`. If `burst` is not positive in that case, `new_for_config`
raises `ValueError`.

A transport is any callable with the same signature as
`natschannel.typed.HttpTransport`. You can pass one through `Config(transport=...)`
or straight to `Clientset(transport)`, for example to stub out the server in
tests.

## What this package does not do

- It does not run a controller, a dispatcher or an admission webhook.
- It does not reconcile channels.
- It does not connect to NATS or deliver any events.
- `HttpTransport` sends plain `urllib` requests. It adds no credentials, client
  certificates or kubeconfig handling. To get those, supply your own transport.