"""Fasit client resolving scoped resources and their secrets."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Sequence

import httpx
import structlog

from naisd.core.exceptions import ResourceResolutionError, SecretResolutionError
from naisd.deploy.models import ResolvedResource, ResourceRequest


logger = structlog.get_logger()

SCOPED_RESOURCE_PATH = "/api/v2/scopedresource"


class FasitClient:
    """Looks up resources in Fasit scoped by environment, application and zone.

    Secrets are not inlined by Fasit; a resource carries a ``secrets``
    object whose entries point at a secret endpoint. Those are fetched with
    the registry credentials and stored under the same key.
    """

    def __init__(self, base_url: str, username: str, password: str, client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.client = client

    async def get_resources(
        self,
        requests: Sequence[ResourceRequest],
        environment: str,
        application: str,
        zone: str,
    ) -> List[ResolvedResource]:
        """Resolve every request, preserving input order.

        Lookups run concurrently. The first failure cancels the rest and is
        raised; no partial list is ever returned.
        """
        tasks = [
            asyncio.create_task(self.get_resource(request, environment, application, zone))
            for request in requests
        ]
        try:
            resolved = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.info("Resolved Fasit resources", count=len(resolved))
        return list(resolved)

    async def get_resource(
        self,
        request: ResourceRequest,
        environment: str,
        application: str,
        zone: str,
    ) -> ResolvedResource:
        params = {
            "alias": request.alias,
            "type": request.type,
            "environment": environment,
            "application": application,
            "zone": zone,
        }
        url = self.base_url + SCOPED_RESOURCE_PATH
        logger.debug("Looking up Fasit resource", alias=request.alias, type=request.type)

        try:
            resp = await self.client.get(url, params=params)
        except httpx.HTTPError as e:
            raise ResourceResolutionError(f"Fasit lookup for {request.alias} failed: {e}") from e

        if resp.status_code != 200:
            logger.warning(
                "Fasit lookup returned non-success status",
                alias=request.alias,
                status_code=resp.status_code,
            )
            raise ResourceResolutionError(
                f"Fasit lookup for {request.alias} returned HTTP {resp.status_code}"
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise ResourceResolutionError(f"Fasit response for {request.alias} is not JSON: {e}") from e

        return await self._to_resolved(request, body)

    async def _to_resolved(self, request: ResourceRequest, body: Any) -> ResolvedResource:
        if not isinstance(body, dict):
            raise ResourceResolutionError(f"Fasit response for {request.alias} is not an object")

        missing = [
            field for field in ("alias", "type") if not isinstance(body.get(field), str) or not body[field]
        ]
        if "properties" not in body:
            missing.append("properties")
        if missing:
            raise ResourceResolutionError(
                f"Fasit response for {request.alias} is missing {', '.join(missing)}"
            )

        properties = body["properties"]
        if not isinstance(properties, dict):
            raise ResourceResolutionError(f"Fasit properties for {request.alias} is not an object")

        secret: Dict[str, str] = {}
        secrets = body.get("secrets") or {}
        if not isinstance(secrets, dict):
            raise ResourceResolutionError(f"Fasit secrets for {request.alias} is not an object")
        for key, reference in secrets.items():
            secret[key] = await self.get_secret(request.alias, key, reference)

        return ResolvedResource(
            name=request.alias,
            resourceType=body["type"],
            properties={str(k): _stringify(v) for k, v in properties.items()},
            secret=secret,
        )

    async def get_secret(self, alias: str, key: str, reference: Any) -> str:
        """Exchange a secret reference for its raw value."""
        ref = reference.get("ref") if isinstance(reference, dict) else None
        if not isinstance(ref, str) or not ref:
            raise SecretResolutionError(f"Secret {key} of {alias} has no usable reference: {ref!r}")

        try:
            resp = await self.client.get(ref, auth=httpx.BasicAuth(self.username, self.password))
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SecretResolutionError(f"Fetching secret {key} of {alias} failed: {e}") from e

        if resp.status_code != 200:
            logger.warning("Secret fetch returned non-success status", alias=alias, key=key, status_code=resp.status_code)
            raise SecretResolutionError(
                f"Fetching secret {key} of {alias} returned HTTP {resp.status_code}"
            )

        logger.debug("Resolved secret", alias=alias, key=key)
        return resp.text


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True)
    return str(value)
