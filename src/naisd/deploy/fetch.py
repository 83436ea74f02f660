"""Fetch and decode the application config document."""

from __future__ import annotations

import httpx
import structlog
import yaml
from pydantic import ValidationError

from naisd.core.exceptions import ConfigDecodeError, ConfigFetchError
from naisd.deploy.models import AppConfig


logger = structlog.get_logger()


def parse_app_config(data: bytes) -> AppConfig:
    """Decode YAML bytes into an AppConfig.

    Raises ConfigDecodeError for malformed YAML, a non-mapping document
    or a document that does not satisfy the AppConfig schema.
    """
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise ConfigDecodeError(f"App config is not valid YAML: {e}") from e

    if not isinstance(document, dict):
        raise ConfigDecodeError("App config must be a mapping")

    try:
        return AppConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigDecodeError(f"Invalid app config: {e}") from e


class ConfigFetcher:
    """Retrieves app configs over HTTP using an injected client."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def fetch(self, url: str) -> AppConfig:
        logger.info("Fetching app config", url=url)
        try:
            resp = await self.client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.warning("App config request failed", url=url, error=str(e))
            raise ConfigFetchError(f"Could not fetch app config from {url}: {e}") from e

        if not resp.is_success:
            logger.warning("App config returned non-success status", url=url, status_code=resp.status_code)
            raise ConfigFetchError(f"Fetching app config from {url} returned HTTP {resp.status_code}")

        try:
            config = parse_app_config(resp.content)
        except ConfigDecodeError as e:
            logger.warning("App config could not be decoded", url=url, error=str(e))
            raise

        logger.info(
            "Fetched app config",
            image=config.image,
            port=config.port,
            resources=len(config.resource_requests),
        )
        return config
