"""Tests for formlet composition, accessors and the build lifecycle."""

import logging

import pytest

from formlets import (
    BuildResult,
    BuildState,
    BuildStateError,
    DuplicateFieldError,
    FormletSnapshot,
    Formlet,
    FormSettings,
    Hidden,
    Input,
    ReentrantBuildError,
    Select,
    StaleBindingError,
    ValueSource,
)
from formlets.utils import MISSING, format_value
from tests.formlets.utils import ChildFormlet, GrandChildFormlet, LeafFormlet


def test_can_add_fields_to_a_form(make_formlet):
    def closure(form):
        form.add_field(Input("foo"))
        form.add_field(Input("bim", "email"))
        form.add_field(Select("bar"))

    form = make_formlet(closure)
    form.build()

    assert len(form.fields()) == 3
    assert isinstance(form.fields("foo")["foo"], Input)
    assert list(form.fields(["bar", "foo"])) == ["bar", "foo"]
    assert isinstance(form.field("bar"), Select)
    assert form.field("bim").input_type == "email"

    assert form.field("doesnt exist") is None
    assert form.fields("doesnt exist") == {}
    assert form.fields(["foo", "doesnt exist"]) == {"foo": form.field("foo")}


def test_duplicate_field_names_are_rejected(make_formlet):
    def closure(form):
        form.add_field(Input("foo"))
        form.add_field(Input("foo"))

    form = make_formlet(closure)

    with pytest.raises(DuplicateFieldError, match="foo"):
        form.build()
    assert form.state is BuildState.FAILED


def test_can_add_a_formlet_to_a_form(make_formlet):
    def closure(form):
        form.add_field(Input("foo"))
        form.add_group("child", ChildFormlet, 2)

    form = make_formlet(closure)
    form.build()

    assert list(form.groups()) == ["child"]
    assert len(form.formlets("child")) == 2
    assert form.formlet("doesnt exist") is None
    assert form.formlets("doesnt exist") == []

    child = form.formlet("child")
    assert isinstance(child, ChildFormlet)
    assert isinstance(child.formlet("grandchild"), GrandChildFormlet)
    assert child.parent is form
    assert child.root is form
    assert child.formlet("grandchild").root is form
    assert child.instance_key == "child[0]"
    assert form.instance_key == ""


def test_formlets_without_filter_are_flattened_in_group_order(make_formlet):
    def closure(form):
        form.add_group("first", LeafFormlet, 2)
        form.add_group("second", LeafFormlet)
        form.add_group("first", LeafFormlet)

    form = make_formlet(closure)
    form.build()

    positions = [child.position for child in form.formlets()]
    assert positions == [("first", 0), ("first", 1), ("first", 2), ("second", 0)]


def test_group_configurator_runs_for_each_child(make_formlet):
    def closure(form):
        form.add_group(
            "child",
            LeafFormlet,
            count=2,
            configurator=lambda child: child.model({"name": child.instance_key}),
        )

    form = make_formlet(closure)
    form.build()

    assert [c.field("name").value for c in form.formlets("child")] == [
        "child[0]",
        "child[1]",
    ]


def test_can_retrieve_parent_model_from_child_formlet(make_formlet):
    form = make_formlet(lambda f: f.add_group("child", ChildFormlet))
    form.model({"name": "Foo"}).build()

    child = form.formlet("child")
    assert child.parent_model() == {"name": "Foo"}
    assert child.bound_data is None
    # Child fields fall back to the nearest bound record
    assert child.field("name").value == "Foo"


def test_model_cannot_be_bound_after_build(make_formlet):
    form = make_formlet(lambda f: f.add_field(Input("foo")))
    form.build()

    with pytest.raises(StaleBindingError):
        form.model({"foo": "late"})
    assert form.field("foo").value is None


def test_build_is_idempotent(make_formlet):
    def closure(form):
        form.add_field(Input("foo"))
        form.add_group("child", ChildFormlet)

    form = make_formlet(closure).model({"foo": "bar"})
    first = form.build()
    second = form.build()

    assert first is second
    assert isinstance(first, BuildResult)
    assert form.prepare_calls == 1
    assert len(form.formlets("child")) == 1
    assert len(form.fields()) == 1
    assert form.field("foo").value == "bar"
    assert form.state is BuildState.BUILT


def test_reentrant_build_fails_fast(make_formlet):
    form = make_formlet(lambda f: f.build())

    with pytest.raises(ReentrantBuildError):
        form.build()
    assert form.state is BuildState.FAILED


def test_failed_formlet_cannot_be_rebuilt(make_formlet):
    def closure(form):
        raise RuntimeError("boom")

    form = make_formlet(closure)
    with pytest.raises(RuntimeError):
        form.build()

    with pytest.raises(BuildStateError):
        form.build()


def test_prepare_is_required():
    with pytest.raises(NotImplementedError):
        Formlet().build()


def test_child_already_built_is_not_rebuilt(make_formlet):
    form = make_formlet(lambda f: f.add_group("child", LeafFormlet))
    form.prepare()
    child = form.formlet("child")
    child_result = child.build()

    assert child.build() is child_result
    assert child.state is BuildState.BUILT


def test_fields_cannot_be_added_after_build(make_formlet):
    form = make_formlet()
    form.build()

    with pytest.raises(BuildStateError):
        form.add_field(Input("late"))


def test_hidden_fields_are_kept_apart_from_visible_fields(make_formlet):
    def closure(form):
        form.add_field(Input("visible"))
        form.add_field(Hidden("secret", "s3cret"))
        form.add_group("child", LeafFormlet)

    result = make_formlet(closure).build()

    assert list(result.form.fields) == ["visible"]
    assert list(result.form.hidden) == ["secret", "token"]
    assert result.form.hidden["secret"].value == "s3cret"
    assert result.form.formlets["child"][0].fields["name"].instance_name == "child[0][name]"


def test_snapshot_is_isolated_from_the_tree(make_formlet):
    form = make_formlet(lambda f: f.add_field(Input("foo").set_value("bar")))
    result = form.build()

    with pytest.raises(TypeError):
        result.form.fields["other"] = Input("other")

    result.form.fields["foo"].value = "changed"
    assert form.field("foo").value == "bar"


def test_result_values_and_provenance(make_formlet):
    def closure(form):
        form.add_field(Input("explicit").set_value("x"))
        form.add_field(Input("fallback").set_default("d"))
        form.add_group("child", LeafFormlet)

    form = make_formlet(closure).old_input({"child": [{"name": "kid"}]})
    result = form.build()

    values = result.values()
    assert values["explicit"] == "x"
    assert values["fallback"] == "d"
    assert values["child[0][name]"] == "kid"
    assert values["_token"] == "abc"

    assert result.provenance["explicit"].source is ValueSource.EXPLICIT
    assert result.provenance["fallback"].is_default()
    assert result.provenance["child[0][name]"].source is ValueSource.PRIOR_SUBMISSION
    assert result.provenance["_token"].source is ValueSource.SYSTEM


def test_log_summary_reports_sources(make_formlet, caplog):
    form = make_formlet(lambda f: f.add_field(Input("foo").set_value("bar")))
    result = form.build()

    with caplog.at_level(logging.INFO, logger="formlets.result"):
        result.log_summary()

    assert "Formlet <root> values:" in caplog.text
    assert "- foo: bar (explicit)" in caplog.text


def test_groups_cannot_be_added_after_build(make_formlet):
    form = make_formlet(lambda f: f.add_group("child", LeafFormlet))
    form.build()

    with pytest.raises(BuildStateError):
        form.add_group("child", LeafFormlet)
    assert len(form.formlets("child")) == 1


def test_model_cannot_be_bound_after_a_failed_build(make_formlet):
    def closure(form):
        raise RuntimeError("boom")

    form = make_formlet(closure)
    with pytest.raises(RuntimeError):
        form.build()

    assert form.state is BuildState.FAILED
    with pytest.raises(StaleBindingError):
        form.model({"foo": "late"})


def test_shared_settings_are_not_mutated_by_formlets():
    settings = FormSettings(method="PUT")
    first = Formlet(settings)
    second = Formlet(settings)

    first.set_prefix("first")

    assert first.prefix == "first"
    assert second.prefix is None
    assert settings.prefix is None
    assert second.settings.method == "PUT"


def test_snapshot_sections_default_to_empty_read_only_mappings():
    snapshot = FormletSnapshot(path="", instance_key="")

    assert dict(snapshot.fields) == {}
    assert snapshot.get("formlets") == {}
    assert list(snapshot.iter_fields()) == []
    with pytest.raises(TypeError):
        snapshot.hidden["token"] = None
    assert snapshot.attributes is not snapshot.fields


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, "–"),
        (MISSING, "–"),
        ("", "''"),
        ({"id": 3, "name": "Events"}, "<record id=3>"),
        ([{"id": 2}, {"id": 3}], "[<record id=2>, <record id=3>]"),
        ({"frequency": "weekly"}, "{frequency: weekly}"),
        ([1, "2"], "[1, 2]"),
    ],
)
def test_summary_values_are_rendered_compactly(value, expected):
    assert format_value(value) == expected
