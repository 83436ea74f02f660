"""Tests for app config retrieval and decoding."""

import httpx
import pytest
import yaml

from naisd.core.exceptions import ConfigDecodeError, ConfigFetchError
from naisd.deploy.fetch import ConfigFetcher, parse_app_config


CONFIG = {
    "image": "name/Container",
    "port": 321,
    "fasitResources": {"used": [{"alias": "alias1", "type": "db"}, {"alias": "alias2", "type": "queue"}]},
}


@pytest.mark.asyncio
async def test_fetch_decodes_config(make_http_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=yaml.safe_dump(CONFIG).encode())

    config = await ConfigFetcher(make_http_client(handler)).fetch("http://repo.com/app")

    assert seen == ["http://repo.com/app"]
    assert config.image == "name/Container"
    assert config.port == 321
    assert [(r.alias, r.type) for r in config.resource_requests] == [("alias1", "db"), ("alias2", "queue")]


@pytest.mark.asyncio
async def test_non_success_status_is_fetch_error(make_http_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"foo": "bar"})

    with pytest.raises(ConfigFetchError) as exc_info:
        await ConfigFetcher(make_http_client(handler)).fetch("http://repo.com/app")

    assert not isinstance(exc_info.value, ConfigDecodeError)
    assert "400" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_error_is_fetch_error(make_http_client):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ConfigFetchError):
        await ConfigFetcher(make_http_client(handler)).fetch("http://repo.com/app")


@pytest.mark.asyncio
async def test_undecodable_body_is_decode_error(make_http_client):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"image: [unclosed")

    with pytest.raises(ConfigDecodeError):
        await ConfigFetcher(make_http_client(handler)).fetch("http://repo.com/app")


def test_missing_port_is_decode_error():
    with pytest.raises(ConfigDecodeError):
        parse_app_config(b"image: name/Container\n")


def test_port_out_of_range_is_decode_error():
    with pytest.raises(ConfigDecodeError):
        parse_app_config(b"image: name/Container\nport: 70000\n")


def test_empty_image_is_decode_error():
    with pytest.raises(ConfigDecodeError):
        parse_app_config(b"image: ''\nport: 8080\n")


def test_non_mapping_document_is_decode_error():
    with pytest.raises(ConfigDecodeError):
        parse_app_config(b"- image\n- port\n")


def test_resources_default_to_empty():
    config = parse_app_config(b"image: name/Container\nport: 8080\n")
    assert config.resource_requests == []
    assert config.replicas is None


def test_optional_replicas_and_healthcheck():
    config = parse_app_config(
        yaml.safe_dump(
            {
                "image": "name/Container",
                "port": 8080,
                "replicas": {"min": 1, "max": 6, "cpuThresholdPercentage": 70},
                "healthcheck": {"liveness": {"path": "/isalive"}, "readiness": {"path": "/isready", "initialDelay": 5}},
            }
        ).encode()
    )

    assert config.replicas.max == 6
    assert config.healthcheck.liveness.path == "/isalive"
    assert config.healthcheck.liveness.initialDelay == 20
    assert config.healthcheck.readiness.initialDelay == 5


def test_inverted_replica_bounds_are_rejected():
    with pytest.raises(ConfigDecodeError):
        parse_app_config(b"image: name/Container\nport: 8080\nreplicas: {min: 5, max: 2}\n")
