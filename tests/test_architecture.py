"""Architectural boundary tests using pytest-archon.

These tests verify that the codebase follows clean architecture principles:
- Domain layer has no dependencies on adapters or application services
- Application services don't depend on adapters
- Only the web adapter wires application services
- The realtime core does not reach into HTTP routes
"""

from pytest_archon import archrule


def test_domain_models_have_no_dependencies() -> None:
    """Domain models should not import any other modules except standard library and domain itself."""
    (
        archrule("domain models", comment="Domain models should be independent")
        .match("memoryscape.domain.models*")
        .should_not_import("memoryscape.adapters*")
        .should_not_import("memoryscape.application*")
        .should_not_import("memoryscape.domain.contracts*")
        .should_not_import("memoryscape.domain.ports*")
        .may_import("memoryscape.domain.models*")
        .check("memoryscape")
    )


def test_domain_contracts_and_ports_have_no_dependencies() -> None:
    """Domain contracts and ports should not import adapters or application."""
    (
        archrule("domain interfaces", comment="Protocols only describe the domain")
        .match("memoryscape.domain.contracts*", "memoryscape.domain.ports*")
        .should_not_import("memoryscape.adapters*")
        .should_not_import("memoryscape.application*")
        .may_import("memoryscape.domain*")
        .check("memoryscape")
    )


def test_application_services_dont_import_adapters() -> None:
    """Application services should not depend on adapters (infrastructure layer)."""
    (
        archrule(
            "application services", comment="Application services should not depend on adapters"
        )
        .match("memoryscape.application*")
        .should_not_import("memoryscape.adapters*")
        .may_import("memoryscape.domain*")
        .may_import("memoryscape.application*")
        .check("memoryscape")
    )


def test_infrastructure_adapters_dont_import_application() -> None:
    """Persistence, identity, AI, media and config adapters should not import application services."""
    (
        archrule(
            "adapters independence", comment="Only the web adapter wires application services"
        )
        .match(
            "memoryscape.adapters.persistence*",
            "memoryscape.adapters.auth*",
            "memoryscape.adapters.ai*",
            "memoryscape.adapters.media*",
            "memoryscape.adapters.config*",
            "memoryscape.adapters.api_*",
        )
        .should_not_import("memoryscape.application*")
        .should_not_import("memoryscape.adapters.web*")
        .may_import("memoryscape.domain*")
        .check("memoryscape", only_direct_imports=True)
    )


def test_realtime_core_dont_import_routes() -> None:
    """Presence, dispatch and the socket protocol should not depend on HTTP routes."""
    (
        archrule("realtime independence", comment="Realtime core must not import routes")
        .match(
            "memoryscape.adapters.web.presence",
            "memoryscape.adapters.web.broadcasters*",
            "memoryscape.adapters.web.realtime*",
            "memoryscape.adapters.web.sweepers*",
        )
        .should_not_import("memoryscape.adapters.web.routes*")
        .should_not_import("memoryscape.adapters.web.app")
        .should_not_import("memoryscape.application*")
        .may_import("memoryscape.domain*")
        .check("memoryscape", only_direct_imports=True)
    )


def test_no_circular_dependencies_in_domain() -> None:
    """Domain layer should not have circular dependencies."""
    (
        archrule("domain no cycles", comment="Domain layer should not have circular dependencies")
        .match("memoryscape.domain*")
        .should_not_import("memoryscape.adapters*")
        .should_not_import("memoryscape.application*")
        .may_import("memoryscape.domain*")
        .check("memoryscape", only_direct_imports=True)
    )
