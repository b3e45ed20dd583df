"""Test public API surface - imports work and the root package re-exports the API."""

import types


def test_api_exports_core_functions():
    from schemagate.api import locate, validate_repository, validate_snapshot

    for func in (locate, validate_repository, validate_snapshot):
        assert isinstance(func, types.FunctionType)


def test_root_exports_match_all():
    import schemagate

    for name in schemagate.__all__:
        assert hasattr(schemagate, name), name
    assert schemagate.validate_repository is schemagate.api.validate_repository
    assert isinstance(schemagate.__version__, str)


def test_internal_modules_not_exported():
    import schemagate

    assert "api" not in schemagate.__all__
    assert not any(name.startswith("_internal") for name in schemagate.__all__)


def test_error_hierarchy():
    from schemagate import DiscoveryEmpty, InvocationError, SchemaGateError

    assert issubclass(DiscoveryEmpty, SchemaGateError)
    assert issubclass(InvocationError, SchemaGateError)
    # Callers that only know the builtin types still catch them.
    assert issubclass(DiscoveryEmpty, FileNotFoundError)
    assert issubclass(InvocationError, ValueError)


def test_discovery_empty_guidance_lists_locations():
    from schemagate import DiscoveryEmpty

    error = DiscoveryEmpty("/repo", ["schema dumps", "paired migrations"])
    assert error.root == "/repo"
    assert "  - schema dumps" in error.guidance()
    assert "  - paired migrations" in str(error)
