# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_registry

from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode, Tracer

from coreason_registry.exceptions import AuthenticationError, InvalidConfigurationError
from coreason_registry.models import Client, GrantType
from coreason_registry.registry import RegistryBuilder, ResourceRegistry


def test_authenticate_success_span(
    telemetry_setup: tuple[InMemorySpanExporter, Tracer], gallery_registry: ResourceRegistry
) -> None:
    """A successful authentication emits an OK span tagged with the client id."""
    exporter, tracer = telemetry_setup

    with patch("coreason_registry.clients.tracer", tracer):
        gallery_registry.authenticate("imagegalleryclient", "secret")

    spans = exporter.get_finished_spans()
    assert len(spans) == 1
    span = spans[0]
    assert span.name == "authenticate_client"
    assert span.attributes is not None
    assert span.attributes["client.id"] == "imagegalleryclient"
    assert span.status.status_code == StatusCode.OK


def test_authenticate_failure_span(
    telemetry_setup: tuple[InMemorySpanExporter, Tracer], gallery_registry: ResourceRegistry
) -> None:
    """A failed authentication emits an ERROR span with the generic description."""
    exporter, tracer = telemetry_setup

    with patch("coreason_registry.clients.tracer", tracer):
        with pytest.raises(AuthenticationError):
            gallery_registry.authenticate("imagegalleryclient", "wrong")

    span = exporter.get_finished_spans()[0]
    assert span.status.status_code == StatusCode.ERROR
    assert span.status.description == "Client authentication failed."
    assert span.attributes is not None
    assert "wrong" not in [str(v) for v in span.attributes.values()]


def test_validation_success_span(
    telemetry_setup: tuple[InMemorySpanExporter, Tracer], gallery_builder: RegistryBuilder
) -> None:
    exporter, tracer = telemetry_setup

    with patch("coreason_registry.validator.tracer", tracer):
        gallery_builder.build()

    span = exporter.get_finished_spans()[0]
    assert span.name == "validate_registry"
    assert span.status.status_code == StatusCode.OK
    assert span.attributes is not None
    assert span.attributes["registry.identity_resources"] == 2
    assert span.attributes["registry.api_resources"] == 1
    assert span.attributes["registry.api_scopes"] == 1
    assert span.attributes["registry.clients"] == 1
    assert "registry.violations" not in span.attributes


def test_validation_failure_span(
    telemetry_setup: tuple[InMemorySpanExporter, Tracer], gallery_builder: RegistryBuilder
) -> None:
    exporter, tracer = telemetry_setup
    gallery_builder.add_client(
        Client(
            client_id="broken",
            allowed_grant_types=frozenset({GrantType.HYBRID}),
            allowed_scopes=frozenset({"unknown_scope"}),
        )
    )

    with patch("coreason_registry.validator.tracer", tracer):
        with pytest.raises(InvalidConfigurationError):
            gallery_builder.build()

    span = exporter.get_finished_spans()[0]
    assert span.status.status_code == StatusCode.ERROR
    assert span.status.description == "2 violation(s)"
    assert span.attributes is not None
    assert span.attributes["registry.violations"] == 2
