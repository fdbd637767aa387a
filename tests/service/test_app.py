"""Tests for the FastAPI service mode."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from codebundle.aggregator import Aggregator
from codebundle.filters import FileFilter
from codebundle.service import create_app
from codebundle.service.app import BundleRequest
from tests._fixtures.workspace_builder import WorkspaceBuilder


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_bundle_endpoint_returns_stream_and_counts(
    client: TestClient, workspace: WorkspaceBuilder
) -> None:
    workspace.write(
        {
            "src/user.ts": "export const user = 1;\n",
            "src/input/user.inputs.ts": "export const input = 1;\n",
            "schema.prisma": "model User {\n  id Int\n}\n",
        }
    )

    response = client.post(
        "/bundle",
        json={
            "paths": [str(workspace.path("src/user.ts"))],
            "schema_path": str(workspace.path("schema.prisma")),
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["files_processed"] == 2
    assert data["files_skipped"] == 0
    assert data["models"] == ["User"]
    assert "export const input = 1;" in data["text"]


def test_bundle_endpoint_maps_missing_schema_to_404(
    client: TestClient, workspace: WorkspaceBuilder
) -> None:
    response = client.post(
        "/bundle",
        json={
            "paths": [str(workspace.path())],
            "schema_path": str(workspace.path("missing.prisma")),
        },
    )

    assert response.status_code == 404


def test_bundle_endpoint_requires_paths(client: TestClient) -> None:
    response = client.post("/bundle", json={"paths": []})

    assert response.status_code == 400


def test_each_request_builds_its_own_aggregator(workspace: WorkspaceBuilder) -> None:
    workspace.write({"src/user.ts": "export const user = 1;\n"})
    calls: list[BundleRequest] = []

    def factory(payload: BundleRequest) -> Aggregator:
        calls.append(payload)
        return Aggregator(FileFilter.build([".ts"]))

    client = TestClient(create_app(factory))
    payload = {"paths": [str(workspace.path("src"))], "name_filter": "user"}

    first = client.post("/bundle", json=payload).json()
    second = client.post("/bundle", json=payload).json()

    assert len(calls) == 2
    assert first == second
    assert first["files_processed"] == 1
