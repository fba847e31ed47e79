"""Tests for the hidden fields injected into the root formlet."""

import logging

import pytest

from formlets import DuplicateFieldError, FormSettings, Hidden, ValueSource
from formlets.system_fields import SystemFieldInjector
from tests.formlets.utils import ClosureFormlet, LeafFormlet


@pytest.mark.parametrize(
    "verb, override",
    [("GET", False), ("POST", False), ("PUT", True), ("DELETE", True), ("PATCH", True)],
)
def test_method_override_field(make_formlet, verb, override):
    form = make_formlet().method(verb)
    result = form.build()

    assert ("method" in form.hidden_fields()) is override
    if override:
        field = result.hidden["method"]
        assert field.instance_name == "_method"
        assert field.value == verb
    assert form.attributes["method"] == ("GET" if verb == "GET" else "POST")


def test_method_is_normalized(make_formlet):
    form = make_formlet().method("put")
    form.build()

    assert form.hidden_fields()["method"].value == "PUT"


def test_token_is_read_from_the_session(make_formlet):
    result = make_formlet().build()

    token = result.hidden["token"]
    assert token.instance_name == "_token"
    assert token.value == "abc"
    assert token.source is ValueSource.SYSTEM


def test_token_without_session_is_empty(caplog):
    form = ClosureFormlet()

    with caplog.at_level(logging.WARNING, logger="formlets.system_fields"):
        result = form.build()

    assert result.hidden["token"].value is None
    assert "No session attached" in caplog.text


@pytest.mark.parametrize("enabled", [True, False])
def test_honeypot_fields(make_formlet, enabled):
    result = make_formlet().honeypot(enabled).build()

    names = [f.instance_name for f in result.hidden.values()]
    assert ("formlet-terms" in names) is enabled
    assert ("formlet-email" in names) is enabled
    if enabled:
        assert result.hidden["honeypot1"].value == ""
        assert result.hidden["honeypot2"].value == ""


def test_system_fields_are_only_added_to_the_root(make_formlet):
    form = make_formlet(lambda f: f.add_group("child", LeafFormlet)).method("PUT")
    form.build()

    child = form.formlet("child")
    assert child.hidden_fields() == {}
    assert "method" not in child.attributes
    assert set(form.hidden_fields()) == {"method", "token"}


def test_system_field_names_follow_settings(make_formlet):
    form = make_formlet(
        method="delete",
        method_field="_verb",
        token_field="csrf",
        honeypot=True,
        honeypot_fields=("trap-a", "trap-b"),
    )
    result = form.build()

    assert [f.instance_name for f in result.hidden.values()] == [
        "_verb",
        "csrf",
        "trap-a",
        "trap-b",
    ]


def test_system_field_key_collision_is_rejected(make_formlet):
    form = make_formlet(lambda f: f.add_field(Hidden("token", "user value")))

    with pytest.raises(DuplicateFieldError, match="token"):
        form.build()


def test_injector_builds_fields_without_a_formlet(session):
    settings = FormSettings(method="PATCH", honeypot=True)
    fields = SystemFieldInjector(settings, session).system_fields()

    assert list(fields) == ["method", "token", "honeypot1", "honeypot2"]
    assert all(f.is_resolved for f in fields.values())
