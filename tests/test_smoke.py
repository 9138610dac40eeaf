"""Smoke tests to verify PEP 420 namespace package resolution.

Each test imports the leaf __init__.py of a custodia package to confirm
the implicit namespace package layout works correctly.
"""

from __future__ import annotations


def test_foundation_domain_importable() -> None:
    import custodia.foundation.domain  # noqa: F401


def test_foundation_application_importable() -> None:
    import custodia.foundation.application  # noqa: F401


def test_domain_identity_importable() -> None:
    import custodia.domain.identity  # noqa: F401


def test_infra_fastapi_importable() -> None:
    import custodia.infra.fastapi  # noqa: F401


def test_infra_auth_importable() -> None:
    import custodia.infra.auth  # noqa: F401


def test_infra_persistence_importable() -> None:
    import custodia.infra.persistence  # noqa: F401


def test_infra_observability_importable() -> None:
    import custodia.infra.observability  # noqa: F401
