import pytest

from natschannel.meta import (
    GROUP_NAME,
    V1ALPHA1,
    V1BETA1,
    URL,
    GroupKind,
    GroupResource,
    GroupVersion,
    ObjectMeta,
    parse_url,
)


def test_group_name_carried_into_kinds():
    gvk = V1BETA1.with_kind("NatssChannel")
    assert gvk.group == "messaging.knative.dev"
    assert GROUP_NAME == "messaging.knative.dev"


def test_group_version_string():
    assert str(GroupVersion(GROUP_NAME, "v1alpha1")) == "messaging.knative.dev/v1alpha1"
    assert str(GroupVersion(GROUP_NAME, "v1beta1")) == "messaging.knative.dev/v1beta1"
    assert str(V1ALPHA1) == str(GroupVersion(GROUP_NAME, "v1alpha1"))


def test_group_version_without_group():
    assert str(GroupVersion("", "v1")) == "v1"


def test_with_kind_and_group_kind():
    gvk = V1BETA1.with_kind("NatssChannel")
    assert gvk.kind == "NatssChannel"
    assert gvk.version == V1BETA1.version
    assert gvk.group_kind() == GroupKind(GROUP_NAME, "NatssChannel")


def test_with_resource_and_group_resource():
    gvr = V1ALPHA1.with_resource("natsjetstreamchannels")
    assert gvr.group_resource() == GroupResource(GROUP_NAME, "natsjetstreamchannels")
    assert gvr.version == V1ALPHA1.version


@pytest.mark.parametrize(
    "text",
    [
        "http://example.com",
        "http://foo.bar/path?x=1#frag",
        "https://user@example.com:8443/a/b",
        "/relative/path",
    ],
)
def test_url_round_trip(text):
    assert str(parse_url(text)) == text


def test_url_from_parts():
    assert str(URL(scheme="http", host="foo.bar")) == "http://foo.bar"


def test_parse_url_fields():
    url = parse_url("http://example.com")
    assert url.scheme == "http"
    assert url.host == "example.com"
    assert url == URL(scheme="http", host="example.com")


def test_parse_empty_url_is_none():
    assert parse_url("") is None


def test_parse_url_rejects_bad_port():
    with pytest.raises(ValueError):
        parse_url("http://example.com:abc")


def test_object_meta_annotations_are_independent():
    first = ObjectMeta(name="a")
    second = ObjectMeta(name="b")
    first.annotations["k"] = "v"
    assert second.annotations == {}
    assert first.annotations == {"k": "v"}