"""Project-specific framework utilities.

This package wires the app-agnostic `directivekit` kernel to concrete targets:
config parsing, provider construction from YAML, the `TargetContext` that
directives act on and the capabilities that act on it.

Common entrypoints:

- `directive_project.framework.session`: `DirectiveSession` (config -> providers -> executor)
- `directive_project.framework.provider_config`: `ProviderRegistry`
- `directive_project.framework.capabilities`: pragma/module capabilities and the router
"""
