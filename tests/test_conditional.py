from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from hapikit.conditional import ConditionalParams, StatusError

READ = SimpleNamespace(method="GET")
WRITE = SimpleNamespace(method="PUT")

NOW = datetime(2021, 1, 1, 12, 0, tzinfo=timezone.utc)
BEFORE = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)
AFTER = datetime(2022, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_has_conditional():
    assert ConditionalParams().has_conditional_params() is False
    assert ConditionalParams(if_match=["test"]).has_conditional_params() is True
    assert ConditionalParams(if_none_match=["test"]).has_conditional_params() is True
    assert ConditionalParams(if_modified_since=datetime.now()).has_conditional_params() is True
    assert ConditionalParams(if_unmodified_since=datetime.now()).has_conditional_params() is True


def test_if_match_read():
    p = ConditionalParams(if_match=['"abc123"', 'W/"def456"'])
    p.resolve(READ)
    assert p.precondition_failed("abc123", None) is None
    assert p.precondition_failed("def456", None) is None

    with pytest.raises(StatusError) as info:
        p.precondition_failed("bad", None)
    assert info.value.status == 304

    with pytest.raises(StatusError) as info:
        p.precondition_failed("", None)
    assert info.value.status == 304


def test_if_match_write():
    p = ConditionalParams(if_match=['"abc123"', 'W/"def456"'])
    p.resolve(WRITE)
    assert p.precondition_failed("abc123", None) is None

    with pytest.raises(StatusError) as info:
        p.precondition_failed("bad", None)
    assert info.value.status == 412
    assert info.value.errors[0].location == "request.headers.If-Match"
    assert info.value.errors[0].message == "If-Match precondition failed, found resource with ETag bad"


def test_if_none_match_read():
    p = ConditionalParams(if_none_match=['"abc123"', 'W/"def456"'])
    p.resolve(READ)
    assert p.precondition_failed("bad", None) is None
    assert p.precondition_failed("", None) is None

    with pytest.raises(StatusError) as info:
        p.precondition_failed("abc123", None)
    assert info.value.status == 304

    with pytest.raises(StatusError) as info:
        p.precondition_failed("def456", None)
    assert info.value.status == 304


def test_if_none_match_write():
    p = ConditionalParams(if_none_match=['"abc123"', 'W/"def456"'])
    p.resolve(WRITE)
    with pytest.raises(StatusError) as info:
        p.precondition_failed("abc123", None)
    assert info.value.status == 412
    assert p.precondition_failed("bad", None) is None

    p.if_none_match = ["*"]
    assert p.precondition_failed("", None) is None

    with pytest.raises(StatusError) as info:
        p.precondition_failed("abc123", None)
    assert info.value.status == 412
    assert info.value.errors[0].value == "*"


def test_if_modified_since_read():
    p = ConditionalParams(if_modified_since=NOW)
    p.resolve(READ)
    with pytest.raises(StatusError):
        p.precondition_failed("", BEFORE)
    with pytest.raises(StatusError):
        p.precondition_failed("", NOW)
    assert p.precondition_failed("", AFTER) is None


def test_if_modified_since_write():
    p = ConditionalParams(if_modified_since=NOW)
    p.resolve(WRITE)
    with pytest.raises(StatusError) as info:
        p.precondition_failed("", BEFORE)
    assert info.value.status == 412
    assert info.value.errors[0].location == "request.headers.If-Modified-Since"


def test_if_unmodified_since_read():
    p = ConditionalParams(if_unmodified_since=NOW)
    p.resolve(READ)
    assert p.precondition_failed("", BEFORE) is None
    assert p.precondition_failed("", NOW) is None
    with pytest.raises(StatusError):
        p.precondition_failed("", AFTER)


def test_if_unmodified_since_write():
    p = ConditionalParams(if_unmodified_since=NOW)
    p.resolve(WRITE)
    with pytest.raises(StatusError) as info:
        p.precondition_failed("", AFTER)
    assert info.value.status == 412
    assert info.value.errors[0].location == "request.headers.If-Unmodified-Since"


def test_no_conditions_never_fail():
    p = ConditionalParams()
    p.resolve(WRITE)
    assert p.precondition_failed("abc123", NOW) is None