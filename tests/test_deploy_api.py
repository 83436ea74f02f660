"""End-to-end tests for the /deploy endpoint."""

import json

import httpx
import pytest
import yaml
from fastapi.testclient import TestClient

from naisd.core.config import Settings
from naisd.core.exceptions import ClusterError
from naisd.deploy.cluster import InMemoryClusterClient
from naisd.main import create_app


APP_CONFIG = yaml.safe_dump(
    {
        "image": "name/Container",
        "port": 321,
        "fasitResources": {"used": [{"alias": "alias1", "type": "db"}]},
    }
)


def _body(**overrides) -> dict:
    body = {
        "application": "appname",
        "version": "123",
        "environment": "namespace",
        "appConfigUrl": "http://repo.com/app",
        "zone": "fss",
        "namespace": "namespace",
        "username": "user",
        "password": "pass",
    }
    body.update(overrides)
    return body


class Upstream:
    """Answers config and Fasit requests, recording each one."""

    def __init__(self, fasit_response: dict, config_status: int = 200, fasit_status: int = 200):
        self.fasit_response = fasit_response
        self.config_status = config_status
        self.fasit_status = fasit_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "repo.com" and request.url.path == "/app":
            return httpx.Response(self.config_status, content=APP_CONFIG.encode())
        if request.url.host == "fasit.local" and request.url.path == "/api/v2/scopedresource":
            return httpx.Response(self.fasit_status, json=self.fasit_response)
        return httpx.Response(404)

    def hosts(self):
        return [r.url.host for r in self.requests]


@pytest.fixture
def upstream(load_testdata):
    return Upstream(load_testdata("fasitResponse.json"))


@pytest.fixture
def cluster():
    return InMemoryClusterClient()


@pytest.fixture
def client(upstream, cluster, make_http_client):
    settings = Settings(
        fasit_url="https://fasit.local",
        cluster_domain="nais.example.tk",
        cluster_mode="memory",
        log_format="console",
    )
    app = create_app(settings, http_client=make_http_client(upstream), cluster_client=cluster)
    with TestClient(app) as test_client:
        yield test_client


def test_an_incorrect_payload_gives_error(client, upstream, cluster):
    r = client.post("/deploy", content=b"gibberish")

    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/plain")
    assert r.headers["X-Error-Type"] == "MalformedRequestError"
    assert r.text.startswith("Unable to decode deployment request")
    assert upstream.requests == []
    assert cluster.history == []


def test_wrongly_typed_payload_gives_error(client, upstream):
    r = client.post("/deploy", content=json.dumps({"application": ["not", "a", "string"]}))

    assert r.status_code == 400
    assert upstream.requests == []


def test_invalid_request_is_rejected_before_network(client, upstream, cluster):
    r = client.post("/deploy", json=_body(zone="", username=""))

    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/plain")
    assert r.headers["X-Error-Type"] == "DeploymentValidationError"
    assert r.text == (
        "Zone is required and is empty\n"
        "Username is required and is empty\n"
        "Zone can only be fss or sbs\n"
    )
    assert upstream.requests == []
    assert cluster.history == []


def test_no_manifest_gives_error(client, upstream, cluster):
    upstream.config_status = 400

    r = client.post("/deploy", json=_body())

    assert r.status_code == 500
    assert r.headers["X-Error-Type"] == "ConfigFetchError"
    assert "returned HTTP 400" in r.text
    assert upstream.hosts() == ["repo.com"]
    assert cluster.history == []


def test_valid_deployment_request_and_app_config_create_resources(client, upstream, cluster):
    r = client.post("/deploy", json=_body())

    assert r.status_code == 200, r.text
    assert r.text == "result: \n- created deployment\n- created service\n- created ingress\n- created autoscaler\n"

    assert upstream.hosts() == ["repo.com", "fasit.local"]
    assert dict(upstream.requests[1].url.params) == {
        "alias": "alias1",
        "type": "db",
        "environment": "namespace",
        "application": "appname",
        "zone": "fss",
    }

    deployment = cluster.get("deployment", "namespace", "appname")
    env = {e["name"]: e["value"] for e in deployment["spec"]["template"]["spec"]["containers"][0]["env"]}
    assert env["ALIAS1_USERNAME"] == "basta"
    assert cluster.get("autoscaler", "namespace", "appname") is not None


def test_fasit_failure_gives_server_error(client, upstream, cluster):
    upstream.fasit_status = 404

    r = client.post("/deploy", json=_body())

    assert r.status_code == 500
    assert r.headers["X-Error-Type"] == "ResourceResolutionError"
    assert "alias1" in r.text
    assert cluster.history == []


def test_apply_failure_reports_partial_progress(upstream, make_http_client):
    class BrokenIngress(InMemoryClusterClient):
        def create_or_update_ingress(self, namespace, manifest):
            raise ClusterError("ingress class not found")

    settings = Settings(fasit_url="https://fasit.local", cluster_mode="memory", log_format="console")
    app = create_app(settings, http_client=make_http_client(upstream), cluster_client=BrokenIngress())

    with TestClient(app) as test_client:
        r = test_client.post("/deploy", json=_body())

    assert r.status_code == 500
    assert r.headers["content-type"].startswith("text/plain")
    assert r.headers["X-Error-Type"] == "ApplyError"
    assert r.text.endswith("result: \n- created deployment\n- created service\n")


def test_isalive(client):
    r = client.get("/isalive")

    assert r.status_code == 200
    assert r.text == "alive"
