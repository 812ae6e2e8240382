import pytest

from directivekit.directive_types import Bundle, Directive, Exclusion


def _gen(bundle_names, extra_args, context):
    return ["strict"]


def test_directive_normalizes_target_and_args():
    directive = Directive(target="  exporter ", args=["foo", "bar"])
    assert directive.target == "exporter"
    assert directive.args == ("foo", "bar")
    assert directive.label == "exporter:[foo,bar]"


def test_directive_rejects_unknown_action_and_position():
    with pytest.raises(ValueError, match=r"action_kind must be one of"):
        Directive(target="x", action_kind="toggle")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match=r"position must be one of"):
        Directive(target="x", position="middle")  # type: ignore[arg-type]


def test_directive_rejects_empty_target_and_string_args():
    with pytest.raises(TypeError, match=r"target must be a non-empty string"):
        Directive(target="  ")
    with pytest.raises(TypeError, match=r"args must be a sequence"):
        Directive(target="x", args="abc")  # type: ignore[arg-type]


def test_verify_requires_min_version_and_no_args():
    with pytest.raises(ValueError, match=r"verify requires min_version"):
        Directive(target="pkg", action_kind="verify")
    with pytest.raises(ValueError, match=r"verify cannot carry args"):
        Directive(target="pkg", action_kind="verify", min_version="1.0", args=("x",))
    with pytest.raises(ValueError, match=r"only allowed with action_kind='verify'"):
        Directive(target="pkg", min_version="1.0")

    verify = Directive(target="pkg", action_kind="verify", min_version=" 2.1 ")
    assert verify.min_version == "2.1"
    assert verify.label == "pkg>=2.1"


def test_generator_directive_gets_callable_label():
    directive = Directive.from_generator(_gen, source="tests")
    assert directive.is_generator
    assert directive.action_kind == "generate"
    assert directive.target == f"&{__name__}._gen"
    assert directive.source == "tests"


def test_generator_directive_rejects_args_and_forced_position():
    with pytest.raises(ValueError, match=r"cannot carry args"):
        Directive(target="", action_kind="generate", generator=_gen, args=("x",))
    with pytest.raises(ValueError, match=r"cannot use forced positions"):
        Directive(target="", action_kind="generate", generator=_gen, position="front")
    with pytest.raises(TypeError, match=r"generator must be callable"):
        Directive(target="g", action_kind="generate", generator=None)
    with pytest.raises(ValueError, match=r"requires action_kind='generate'"):
        Directive(target="g", generator=_gen)


def test_labels_show_position_and_disable_markers():
    assert Directive(target="strict", position="front").label == "<strict"
    assert Directive(target="warnings", action_kind="disable", position="back").label == ">-warnings"


def test_without_args_returns_same_instance_when_nothing_matches():
    directive = Directive(target="exporter", args=("foo", "bar"))
    assert directive.without_args(["zzz"]) is directive

    narrowed = directive.without_args(["foo", "bar"])
    assert narrowed.args == ()
    assert narrowed.target == "exporter"


def test_bundle_validates_name_and_members():
    with pytest.raises(ValueError, match=r"cannot start with '-'"):
        Bundle(name="-exclude")
    with pytest.raises(TypeError, match=r"must be a Directive"):
        Bundle(name="b", directives=("strict",))  # type: ignore[arg-type]

    bundle = Bundle(name=" withSig ", directives=[Directive(target="feature")])
    assert bundle.name == "withSig"
    assert isinstance(bundle.directives, tuple)


def test_exclusion_matching_ignores_generators():
    exclusion = Exclusion(target="strict")
    assert exclusion.is_whole
    assert exclusion.matches(Directive(target="strict"))
    assert exclusion.matches(Directive(target="strict", action_kind="disable"))
    assert not exclusion.matches(Directive(target="warnings"))

    generator = Directive(target="strict", action_kind="generate", generator=_gen)
    assert not exclusion.matches(generator)

    partial = Exclusion(target="exporter", sub_items=["bar"])
    assert not partial.is_whole
    assert partial.sub_items == ("bar",)
