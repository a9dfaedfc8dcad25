"""Prometheus metrics.

The default registry is global and counters only go up, so every test
asserts on the delta between a reading before and after the action.
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from tests.conftest import add_course, auth


def _get_sample(name: str, labels: dict | None = None) -> float:
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0


def test_request_counter_increments(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/health")
    assert _get_sample("http_requests_total", labels) - before >= 1


def test_request_duration_histogram_observes(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/health"}
    before = _get_sample("http_request_duration_seconds_count", labels)
    client.get("/health")
    assert _get_sample("http_request_duration_seconds_count", labels) - before >= 1


def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "http_requests_total" in resp.text
    assert "enrollment_transitions_total" in resp.text


def test_metrics_endpoint_not_self_instrumented(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "/metrics", "status_code": "200"}
    before = _get_sample("http_requests_total", labels)
    client.get("/metrics")
    client.get("/metrics")
    assert _get_sample("http_requests_total", labels) == before


def test_registration_counts_transition(
    client: TestClient, admin_token: str, student_token: str
) -> None:
    course = add_course(client, admin_token)
    before = _get_sample("enrollment_transitions_total", {"transition": "register"})
    client.post(f"/v1/courses/{course['id']}/enroll", headers=auth(student_token))
    after = _get_sample("enrollment_transitions_total", {"transition": "register"})
    assert after - before == 1


def test_rejected_upload_counted(client: TestClient, admin_token: str) -> None:
    course = add_course(client, admin_token)
    labels = {"category": "courses", "result": "rejected"}
    before = _get_sample("asset_uploads_total", labels)
    client.post(
        f"/v1/courses/{course['id']}/image",
        files={"file": ("cover.gif", b"GIF89a", "image/gif")},
        headers=auth(admin_token),
    )
    assert _get_sample("asset_uploads_total", labels) - before == 1


def test_endpoint_label_is_route_template(client: TestClient) -> None:
    labels = {
        "method": "GET",
        "endpoint": "/v1/courses/{course_id}",
        "status_code": "404",
    }
    before = _get_sample("http_requests_total", labels)
    client.get("/v1/courses/first-missing")
    client.get("/v1/courses/second-missing")
    assert _get_sample("http_requests_total", labels) - before == 2
    assert (
        REGISTRY.get_sample_value(
            "http_requests_total",
            {"method": "GET", "endpoint": "/v1/courses/first-missing", "status_code": "404"},
        )
        is None
    )


def test_unrouted_path_grouped(client: TestClient) -> None:
    labels = {"method": "GET", "endpoint": "unmatched", "status_code": "404"}
    before = _get_sample("http_requests_total", labels)
    client.get("/no/such/page")
    assert _get_sample("http_requests_total", labels) - before == 1
