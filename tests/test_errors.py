from natschannel.errors import FieldError, combine, err_invalid_value, err_missing_field

DETAILS = "expected at least one of, got none"


def _subscriber_error(index):
    fe = err_missing_field("replyURI", "subscriberURI")
    fe.details = DETAILS
    return fe.via_field(f"subscriber[{index}]").via_field("subscribable").via_field("spec")


def _expected(index):
    fe = err_missing_field(
        f"spec.subscribable.subscriber[{index}].replyURI",
        f"spec.subscribable.subscriber[{index}].subscriberURI",
    )
    fe.details = DETAILS
    return fe


def test_missing_field_rendering():
    assert str(err_missing_field("b", "a")) == "missing field(s): a, b"


def test_via_field_builds_nested_paths():
    got = _subscriber_error(1)
    assert str(got) == str(_expected(1))
    assert "spec.subscribable.subscriber[1].replyURI" in str(got)
    assert str(got).endswith(DETAILS)


def test_two_errors_merge_into_one_entry():
    got = combine(_subscriber_error(0), _subscriber_error(1))
    want = combine(_expected(0), _expected(1))
    assert str(got) == str(want)
    assert str(got).count(DETAILS) == 1


def test_combine_of_nothing_is_none():
    assert combine() is None
    assert combine(None, None) is None


def test_also_ignores_none():
    err = err_missing_field("x")
    assert str(err.also(None)) == str(err)


def test_also_on_empty_error_without_others_is_none():
    assert FieldError().also() is None


def test_index_segments_attach_to_parent():
    got = err_missing_field("x").via_field("[2]").via_field("items")
    assert str(got) == str(err_missing_field("items[2].x"))


def test_via_field_key_on_annotation():
    iv = err_invalid_value("bogus", "")
    got = iv.via_field_key("annotations", "eventing.knative.dev/scope").via_field("metadata")
    assert str(got) == "invalid value: bogus: metadata.annotations.[eventing.knative.dev/scope]"


def test_distinct_messages_sorted_by_message():
    missing = err_missing_field("a")
    invalid = err_invalid_value("v", "b")
    forward = str(combine(missing, invalid))
    backward = str(combine(invalid, missing))
    assert forward == backward
    lines = forward.split("\n")
    assert lines == sorted(lines)
    assert len(lines) == 2


def test_via_field_does_not_modify_original():
    err = err_missing_field("x")
    err.via_field("parent")
    assert err.paths == ["x"]