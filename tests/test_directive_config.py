import logging

import pytest

from directive_project.foundation.config_namespace import ConfigNamespace
from directive_project.framework.capabilities import DEFAULT_PRAGMAS
from directive_project.framework.config import DirectiveConfig, parse_bool


def _base_cfg_dict() -> dict:
    return {
        "logging": {"level": "debug"},
        "providers": {"base": {"always": ["strict"]}},
    }


def test_minimal_config_defaults():
    cfg, warnings = DirectiveConfig.from_dict(_base_cfg_dict())

    assert warnings == []
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.log_path is None
    assert cfg.pragmas == DEFAULT_PRAGMAS
    assert cfg.default_provider == "base"


def test_unknown_config_keys_warn_by_default():
    cfg_dict = _base_cfg_dict()
    cfg_dict["logging"]["colour"] = True
    cfg_dict["extras"] = {}

    _cfg, warnings = DirectiveConfig.from_dict(cfg_dict)
    assert warnings == ["Unknown config keys: extras, logging.colour"]


def test_unknown_config_keys_strict_mode_raises():
    cfg_dict = _base_cfg_dict()
    cfg_dict["strict"] = "yes"
    cfg_dict["capabilities"] = {"pragmas": ["strict"], "modules": []}

    with pytest.raises(ValueError, match=r"Unknown config keys: capabilities\.modules"):
        DirectiveConfig.from_dict(cfg_dict)


def test_default_provider_must_exist():
    cfg_dict = _base_cfg_dict()
    cfg_dict["providers"]["other"] = {}
    cfg_dict["default_provider"] = "missing"

    with pytest.raises(ValueError, match=r"default_provider=missing is not defined"):
        DirectiveConfig.from_dict(cfg_dict)

    cfg_dict["default_provider"] = "other"
    cfg, _warnings = DirectiveConfig.from_dict(cfg_dict)
    assert cfg.default_provider == "other"

    del cfg_dict["default_provider"]
    cfg, _warnings = DirectiveConfig.from_dict(cfg_dict)
    assert cfg.default_provider is None


def test_invalid_sections_raise():
    with pytest.raises(ValueError, match=r"Invalid log level"):
        DirectiveConfig.from_dict({"logging": {"level": "LOUD"}})
    with pytest.raises(ValueError, match=r"capabilities.pragmas\[1\] must be a non-empty string"):
        DirectiveConfig.from_dict({"capabilities": {"pragmas": ["strict", ""]}})
    with pytest.raises(ValueError, match=r"providers: expected mapping"):
        DirectiveConfig.from_dict({"providers": ["base"]})
    with pytest.raises(ValueError, match=r"Invalid boolean for strict"):
        DirectiveConfig.from_dict({"strict": "maybe"})


def test_numeric_log_levels_are_kept():
    cfg, _warnings = DirectiveConfig.from_dict({"logging": {"level": logging.WARNING}})
    assert cfg.logging.level == logging.WARNING


def test_parse_bool_is_strict():
    assert parse_bool(" Yes ", "x") is True
    assert parse_bool(0, "x") is False
    with pytest.raises(ValueError):
        parse_bool(2, "x")
    with pytest.raises(ValueError):
        parse_bool(None, "x")


def test_config_namespace_tracks_consumed_keys():
    ns = ConfigNamespace(
        {"parent": "base", "always": ["strict"], "bundles": {"a": ["x"]}, "typo": 1},
        path="providers.app",
    )
    assert ns.get_str("parent") == "base"
    assert ns.get_list("always") == ["strict"]
    assert ns.get_mapping("bundles") == {"a": ["x"]}
    assert ns.get_value("doc", default=None) is None

    with pytest.raises(ValueError, match=r"Unknown config keys under providers.app: typo"):
        ns.assert_consumed()

    ns.get_value("typo")
    ns.assert_consumed()
    assert ns.consumed_keys() == ("always", "bundles", "doc", "parent", "typo")


def test_config_namespace_type_and_required_errors():
    ns = ConfigNamespace({"parent": 3, "names": ["a", 3], "always": "strict", "bundles": []}, path="p")
    with pytest.raises(ValueError, match=r"Missing required config key: p.missing"):
        ns.get_str("missing")
    with pytest.raises(TypeError, match=r"p.parent must be a string"):
        ns.get_str("parent")
    with pytest.raises(TypeError, match=r"p.names\[1\] must be a non-empty string"):
        ns.get_list_str("names")
    with pytest.raises(TypeError, match=r"p.always must be a list"):
        ns.get_list("always")
    with pytest.raises(TypeError, match=r"p.bundles must be a mapping"):
        ns.get_mapping("bundles")
