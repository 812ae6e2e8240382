import pytest

from directivekit.directive_types import Directive
from directivekit.errors import MalformedRequestError, UnknownBundleError
from directivekit.providers import StaticProvider
from directivekit.request import Request
from directivekit.resolver import ResolvedDirectives, apply_exclusions, order_by_position, resolve


def _provider(always, bundles=None) -> StaticProvider:
    return StaticProvider.from_declarations(always=always, bundles=bundles or {}, name="test")


def test_with_signatures_bundle_resolves_in_declared_order():
    provider = _provider(
        ["strict", "warnings"],
        {"withSig": ["feature", ["signatures"], ">-warnings", ["experimentalSignatures"]]},
    )

    resolved = resolve(provider, ["withSig"])

    assert isinstance(resolved, ResolvedDirectives)
    assert resolved.labels == (
        "strict",
        "warnings",
        "feature:[signatures]",
        ">-warnings:[experimentalSignatures]",
    )
    assert resolved.request.bundle_names == ("withSig",)


def test_whole_and_sub_item_exclusions():
    provider = _provider(["strict", "warnings", "exporter", ["foo", "bar", "baz"]])

    resolved = resolve(provider, ["-exclude", ["warnings", "exporter", ["bar"]]])

    assert resolved.labels == ("strict", "exporter:[foo,baz]")
    assert resolved.metadata["dropped"] == 1
    assert resolved.metadata["base_count"] == 3
    assert resolved.metadata["exclude"] == ["warnings", "exporter"]


def test_unknown_bundle_raises_before_anything_is_returned():
    provider = _provider(["strict"], {"withSig": ["feature"]})
    with pytest.raises(UnknownBundleError):
        resolve(provider, ["withSig", "missing"])


def test_malformed_request_raises():
    provider = _provider(["strict"], {"withSig": ["feature"]})
    with pytest.raises(MalformedRequestError):
        resolve(provider, ["-exclude", ["strict"], "withSig"])


def test_front_and_back_are_stable_partitions():
    provider = _provider(
        ["a", ">z1", "<f1", "b"],
        {"x": ["<f2", "c", ">z2"]},
    )

    resolved = resolve(provider, ["x"])

    assert resolved.labels == ("<f1", "<f2", "a", "b", "c", ">z1", ">z2")


def test_duplicates_are_kept_and_whole_exclusion_drops_every_copy():
    provider = _provider(["strict"], {"b": ["strict", "warnings"]})

    assert resolve(provider, ["b", "b"]).labels == (
        "strict",
        "strict",
        "warnings",
        "strict",
        "warnings",
    )
    assert resolve(provider, ["b", "-exclude", ["strict"]]).labels == ("warnings",)


def test_sub_item_exclusion_keeps_directive_with_empty_args():
    provider = _provider(["exporter", ["bar"]])

    resolved = resolve(provider, ["-exclude", ["exporter", ["bar"]]])

    assert resolved.labels == ("exporter",)
    assert resolved.directives[0].args == ()


def test_exclusion_applies_to_disable_directives_too():
    provider = _provider(["strict", "-warnings"])
    assert resolve(provider, ["-exclude", ["warnings"]]).labels == ("strict",)


def test_exclusions_do_not_match_generators():
    def gen(bundle_names, extra_args, context):
        return ["strict"]

    provider = _provider([gen, "strict"])
    resolved = resolve(provider, ["-exclude", ["strict", f"&{__name__}.{gen.__qualname__}"]])

    assert len(resolved) == 1
    assert resolved.directives[0].is_generator


def test_resolution_is_idempotent():
    provider = _provider(
        ["strict", "warnings", "exporter", ["foo", "bar"]],
        {"withSig": ["feature", ["signatures"], ">-warnings"]},
    )
    request = ["withSig", "-exclude", ["exporter", ["foo"]], "--pkg", "x"]

    first = resolve(provider, request)
    second = resolve(provider, request)

    assert first.directives == second.directives
    assert first.metadata == second.metadata


def test_resolve_accepts_a_request_object():
    provider = _provider(["strict"], {"b": ["feature"]})
    resolved = resolve(provider, Request(bundle_names=("b",), extra_args={"--k": 1}))
    assert resolved.labels == ("strict", "feature")
    assert resolved.request.extra_args == {"--k": 1}


def test_resolve_rejects_non_directive_provider_output():
    class BadProvider:
        def resolve_base(self, bundle_names, extra_args):
            return ("strict",)

        def bundle_names(self):
            return ()

    with pytest.raises(TypeError, match=r"non-Directive at index 0"):
        resolve(BadProvider(), [])


def test_helpers_work_on_plain_directive_sequences():
    directives = (
        Directive(target="b", position="back"),
        Directive(target="a"),
        Directive(target="f", position="front"),
    )
    assert [d.target for d in order_by_position(directives)] == ["f", "a", "b"]

    kept, dropped = apply_exclusions(directives, ())
    assert kept == directives
    assert dropped == 0
