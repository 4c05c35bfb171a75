import pytest

from natschannel.conditions import Condition, ConditionStatus
from natschannel.lifecycle import (
    CONDITION_ADDRESSABLE,
    CONDITION_CHANNEL_SERVICE_READY,
    CONDITION_DISPATCHER_READY,
    CONDITION_ENDPOINTS_READY,
    CONDITION_READY_TYPE,
    CONDITION_SERVICE_READY,
    CONDITION_SET,
    NatsJetStreamChannelStatus,
    NatssChannelStatus,
)
from natschannel.meta import (
    DEPLOYMENT_AVAILABLE,
    URL,
    Addressable,
    DeploymentCondition,
    DeploymentStatus,
)

STATUS_CLASSES = [NatssChannelStatus, NatsJetStreamChannelStatus]

T = ConditionStatus.TRUE
F = ConditionStatus.FALSE
U = ConditionStatus.UNKNOWN


def _ready_deployment():
    return DeploymentStatus([DeploymentCondition(DEPLOYMENT_AVAILABLE, T)])


def _not_ready_deployment():
    return DeploymentStatus([DeploymentCondition(DEPLOYMENT_AVAILABLE, F)])


def _type_and_status(status):
    return [(c.type, c.status) for c in status.conditions]


def test_condition_set_top_level_is_ready():
    assert CONDITION_SET.happy == "Ready"
    status = NatssChannelStatus()
    manager = CONDITION_SET.manage(status)
    manager.initialize_conditions()
    assert manager.get_condition("Ready").status == U
    assert manager.is_happy() is False


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_get_condition_single(cls):
    cond_ready = Condition(CONDITION_READY_TYPE, T)
    cond_dispatcher = Condition(CONDITION_DISPATCHER_READY, F)
    status = cls(conditions=[cond_ready, cond_dispatcher])
    assert status.get_condition("Ready") == Condition(CONDITION_READY_TYPE, T)


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_get_condition_unknown(cls):
    status = cls(conditions=[Condition(CONDITION_READY_TYPE, T), Condition(CONDITION_DISPATCHER_READY, F)])
    assert status.get_condition("foo") is None


@pytest.mark.parametrize("cls", STATUS_CLASSES)
@pytest.mark.parametrize(
    "initial, dispatcher_status",
    [([], U), ([(CONDITION_DISPATCHER_READY, F)], F), ([(CONDITION_DISPATCHER_READY, T)], T)],
    ids=["empty", "one false", "one true"],
)
def test_initialize_conditions(cls, initial, dispatcher_status):
    status = cls(conditions=[Condition(t, s) for t, s in initial])
    status.initialize_conditions()
    assert _type_and_status(status) == [
        (CONDITION_ADDRESSABLE, U),
        (CONDITION_CHANNEL_SERVICE_READY, U),
        (CONDITION_DISPATCHER_READY, dispatcher_status),
        (CONDITION_ENDPOINTS_READY, U),
        (CONDITION_READY_TYPE, U),
        (CONDITION_SERVICE_READY, U),
    ]


IS_READY_CASES = [
    ("all happy", True, True, True, True, "ready", True),
    ("service not ready", False, False, True, True, "ready", False),
    ("endpoints not ready", True, False, False, True, "ready", False),
    ("deployment not ready", True, False, True, True, "not ready", False),
    ("address not set", True, False, True, False, "ready", False),
    ("channel service not ready", True, False, True, True, "ready", False),
    ("dispatcher missing", True, True, True, True, None, False),
]


@pytest.mark.parametrize("cls", STATUS_CLASSES)
@pytest.mark.parametrize(
    "name, service, channel_service, endpoints, address, dispatcher, want",
    IS_READY_CASES,
    ids=[c[0] for c in IS_READY_CASES],
)
def test_is_ready(cls, name, service, channel_service, endpoints, address, dispatcher, want):
    status = cls()
    status.initialize_conditions()
    if service:
        status.mark_service_true()
    else:
        status.mark_service_failed("NotReadyService", "testing")
    if channel_service:
        status.mark_channel_service_true()
    else:
        status.mark_channel_service_failed("NotReadyChannelService", "testing")
    if address:
        status.set_address(URL(scheme="http", host="foo.bar"))
    if endpoints:
        status.mark_endpoints_true()
    else:
        status.mark_endpoints_failed("NotReadyEndpoints", "testing")
    if dispatcher == "ready":
        status.propagate_dispatcher_status(_ready_deployment())
    elif dispatcher == "not ready":
        status.propagate_dispatcher_status(_not_ready_deployment())
    else:
        status.mark_dispatcher_failed("NotReadyDispatcher", "testing")
    assert status.is_ready() is want


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_set_address_none(cls):
    status = cls()
    status.set_address(None)
    assert status.address == Addressable()
    assert _type_and_status(status) == [(CONDITION_ADDRESSABLE, F), (CONDITION_READY_TYPE, F)]
    assert status.get_condition(CONDITION_ADDRESSABLE).reason == "emptyHostname"


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_set_address_with_domain(cls):
    status = cls()
    url = URL(scheme="http", host="test-domain")
    status.set_address(url)
    assert status.address == Addressable(url=URL(scheme="http", host="test-domain"))
    assert _type_and_status(status) == [(CONDITION_ADDRESSABLE, T), (CONDITION_READY_TYPE, U)]


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_dispatcher_not_ready_message(cls):
    status = cls()
    status.propagate_dispatcher_status(
        DeploymentStatus([DeploymentCondition(DEPLOYMENT_AVAILABLE, F, "Scaling", "no replicas")])
    )
    cond = status.get_condition(CONDITION_DISPATCHER_READY)
    assert cond.status == F
    assert cond.reason == "DispatcherNotReady"
    assert cond.message == "Dispatcher Deployment is not ready: Scaling : no replicas"
    assert status.get_condition(CONDITION_READY_TYPE).status == F


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_propagate_ignores_other_deployment_conditions(cls):
    status = cls()
    status.propagate_dispatcher_status(DeploymentStatus([DeploymentCondition("Progressing", F)]))
    assert status.conditions == []


def test_mark_failed_formats_message():
    for status in (NatssChannelStatus(), NatsJetStreamChannelStatus()):
        status.mark_service_failed("Broken", "service %s is %d%% down", "svc", 50)
        cond = status.get_condition(CONDITION_SERVICE_READY)
        assert (cond.status, cond.reason, cond.message) == (F, "Broken", "service svc is 50% down")


@pytest.mark.parametrize("cls", STATUS_CLASSES)
def test_recovery_after_failure(cls):
    status = cls()
    status.initialize_conditions()
    status.mark_service_true()
    status.mark_channel_service_true()
    status.set_address(URL(scheme="http", host="foo.bar"))
    status.propagate_dispatcher_status(_ready_deployment())
    status.mark_endpoints_failed("Down", "testing")
    assert status.is_ready() is False
    status.mark_endpoints_true()
    assert status.is_ready() is True