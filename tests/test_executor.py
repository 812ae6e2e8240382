import logging

import pytest

from directivekit.engine.executor import (
    DefaultDirectiveRecorder,
    DirectiveExecutor,
    NullDirectiveRecorder,
)
from directivekit.errors import ActionError, UnknownBundleError, VersionError
from directivekit.providers import StaticProvider
from directivekit.resolver import resolve


class FakeCapability:
    def __init__(self, *, fail_on=None, versions=None):
        self.calls = []
        self.fail_on = fail_on
        self.versions = versions or {}

    def apply(self, target, action_kind, args, context):
        if target == self.fail_on:
            raise RuntimeError(f"boom on {target}")
        self.calls.append((action_kind, target, args))

    def check_version(self, target, min_version):
        found = self.versions.get(target)
        if found is None or tuple(map(int, found.split("."))) < tuple(map(int, min_version.split("."))):
            raise VersionError(
                f"{target} too old", target=target, min_version=min_version, found=found
            )
        self.calls.append(("verify", target, min_version))


class EventRecorder:
    def __init__(self):
        self.events = []

    def on_directive_start(self, context, path, directive):
        self.events.append(("start", path))

    def on_directive_end(self, context, record):
        self.events.append(("end", record["path"]))

    def on_directive_error(self, context, path, directive, exc):
        self.events.append(("error", path))


def _resolved(always, bundles=None, request=()):
    provider = StaticProvider.from_declarations(always=always, bundles=bundles or {}, name="test")
    return resolve(provider, list(request))


def test_executes_in_resolved_order_and_reports_records():
    capability = FakeCapability(versions={"pkg": "2.0"})
    executor = DirectiveExecutor(capability, recorder=NullDirectiveRecorder())

    report = executor.execute(
        _resolved(["strict", {"pkg": "1.5"}, ["thing"], ">-warnings", ["x"]]), context=None
    )

    assert capability.calls == [
        ("enable", "strict", ()),
        ("verify", "pkg", "1.5"),
        ("enable", "pkg", ("thing",)),
        ("disable", "warnings", ("x",)),
    ]
    assert report.paths == ("01:strict", "02:pkg", "03:pkg", "04:warnings")
    assert [r["type"] for r in report.records] == ["enable", "verify", "enable", "disable"]
    assert report.records[1]["min_version"] == "1.5"
    assert report.records[3]["args"] == ["x"]
    assert report.records[0]["source"] == "test.always"
    assert report.records[0]["created_at"].endswith("Z")


def test_stops_on_first_failure_and_reports_applied_prefix():
    capability = FakeCapability(fail_on="b")
    recorder = EventRecorder()
    executor = DirectiveExecutor(capability, recorder=recorder)

    with pytest.raises(ActionError) as excinfo:
        executor.execute(_resolved(["a", "b", "c"]), context=None)

    err = excinfo.value
    assert err.target == "b"
    assert err.action_kind == "enable"
    assert err.directive_path == "02:b"
    assert err.directive.target == "b"
    assert [r["target"] for r in err.applied] == ["a"]
    assert isinstance(err.__cause__, RuntimeError)
    assert capability.calls == [("enable", "a", ())]
    assert recorder.events == [("start", "01:a"), ("end", "01:a"), ("start", "02:b"), ("error", "02:b")]


def test_version_failure_stops_execution():
    capability = FakeCapability(versions={"pkg": "1.0"})
    executor = DirectiveExecutor(capability, recorder=NullDirectiveRecorder())

    with pytest.raises(VersionError) as excinfo:
        executor.execute(_resolved([{"pkg": "2.0"}, "after"]), context=None)

    assert excinfo.value.found == "1.0"
    assert excinfo.value.directive_path == "01:pkg"
    assert capability.calls == []


def test_foreign_version_check_errors_are_wrapped():
    class Broken(FakeCapability):
        def check_version(self, target, min_version):
            raise LookupError("registry offline")

    executor = DirectiveExecutor(Broken(), recorder=NullDirectiveRecorder())
    with pytest.raises(VersionError, match=r"registry offline") as excinfo:
        executor.execute(_resolved([{"pkg": "1.0"}]), context=None)
    assert excinfo.value.min_version == "1.0"


def test_generators_expand_depth_first_without_exclusions():
    seen = {}

    def gen(bundle_names, extra_args, context):
        seen["args"] = (bundle_names, dict(extra_args), context)
        return ["warnings", "exporter", [extra_args["--pkg"]]]

    capability = FakeCapability()
    executor = DirectiveExecutor(capability, recorder=NullDirectiveRecorder())
    resolved = _resolved(
        ["strict"],
        {"b": [gen, "last"]},
        request=["b", "-exclude", ["warnings"], "--pkg", "app"],
    )

    report = executor.execute(resolved, context="ctx")

    assert seen["args"] == (("b",), {"--pkg": "app"}, "ctx")
    # Children run before the next sibling and are not filtered by -exclude.
    assert capability.calls == [
        ("enable", "strict", ()),
        ("enable", "warnings", ()),
        ("enable", "exporter", ("app",)),
        ("enable", "last", ()),
    ]
    gen_path = report.paths[1]
    assert gen_path.startswith("02:&")
    assert report.paths[2] == f"{gen_path}/01:warnings"
    assert report.paths[3] == f"{gen_path}/02:exporter"
    assert report.paths[4] == "03:last"
    assert report.records[1]["children"] == 2
    assert [r["target"] for r in report.applied] == ["strict", "warnings", "exporter", "last"]


def test_nested_generators_and_empty_output():
    def inner(bundle_names, extra_args, context):
        return None

    def outer(bundle_names, extra_args, context):
        return ["a", inner, "b"]

    capability = FakeCapability()
    executor = DirectiveExecutor(capability, recorder=NullDirectiveRecorder())
    report = executor.execute(_resolved([outer]), context=None)

    assert [c[1] for c in capability.calls] == ["a", "b"]
    assert len(report.records) == 4


def test_generator_failures_are_wrapped_and_directive_errors_pass_through():
    def broken(bundle_names, extra_args, context):
        raise KeyError("missing")

    def invalid(bundle_names, extra_args, context):
        return [["orphan"]]

    def unknown(bundle_names, extra_args, context):
        raise UnknownBundleError("x")

    executor = DirectiveExecutor(FakeCapability(), recorder=NullDirectiveRecorder())

    with pytest.raises(ActionError, match=r"failed") as excinfo:
        executor.execute(_resolved([broken]), context=None)
    assert excinfo.value.action_kind == "generate"

    with pytest.raises(ActionError, match=r"returned invalid directives"):
        executor.execute(_resolved([invalid]), context=None)

    with pytest.raises(UnknownBundleError):
        executor.execute(_resolved([unknown]), context=None)


def test_failure_inside_generator_reports_nested_path():
    def gen(bundle_names, extra_args, context):
        return ["ok", "bad"]

    executor = DirectiveExecutor(FakeCapability(fail_on="bad"), recorder=NullDirectiveRecorder())
    with pytest.raises(ActionError) as excinfo:
        executor.execute(_resolved(["first", gen]), context=None)

    path = excinfo.value.directive_path
    assert path.startswith("02:&") and path.endswith("/02:bad")
    assert [r["target"] for r in excinfo.value.applied if r["type"] != "generate"] == ["first", "ok"]


def test_executor_validates_collaborators():
    with pytest.raises(TypeError, match=r"missing required method: apply"):
        DirectiveExecutor(object())  # type: ignore[arg-type]
    with pytest.raises(TypeError, match=r"missing required method: on_directive_start"):
        DirectiveExecutor(FakeCapability(), recorder=object())  # type: ignore[arg-type]
    with pytest.raises(TypeError, match=r"expects ResolvedDirectives"):
        DirectiveExecutor(FakeCapability()).execute(["strict"], context=None)  # type: ignore[arg-type]


def test_default_recorder_logs_to_context_logger(caplog):
    class Ctx:
        logger = logging.getLogger("test.directive_recorder")

    executor = DirectiveExecutor(FakeCapability(fail_on="bad"), recorder=DefaultDirectiveRecorder())
    with caplog.at_level(logging.INFO, logger="test.directive_recorder"):
        with pytest.raises(ActionError):
            executor.execute(_resolved(["good", "bad"]), context=Ctx())

    messages = [r.getMessage() for r in caplog.records if r.name == "test.directive_recorder"]
    assert any(m.startswith("Directive: 01:good") for m in messages)
    assert any(m.startswith("Directive failed: 02:bad") for m in messages)
