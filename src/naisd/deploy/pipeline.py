"""Deployment pipeline: validate, fetch, resolve, synthesize, apply."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List

import httpx
import structlog
from prometheus_client import Counter

from naisd.core.exceptions import DeploymentValidationError, NaisdError
from naisd.deploy.applier import apply
from naisd.deploy.cluster import ClusterClient
from naisd.deploy.fasit import FasitClient
from naisd.deploy.fetch import ConfigFetcher
from naisd.deploy.models import AutoscalerBounds, DeploymentRequest
from naisd.deploy.synthesizer import synthesize
from naisd.deploy.validator import validate
from naisd.utils.logging import bind_deployment_context

logger = structlog.get_logger()

DEPLOYMENT_COUNT = Counter(
    "naisd_deployments_total",
    "Deployment attempts by outcome",
    ["outcome"],
)


@dataclass(frozen=True)
class DeployerConfig:
    """Everything the pipeline needs, built once at start-up."""

    http_client: httpx.AsyncClient
    cluster_client: ClusterClient
    fasit_url: str
    cluster_domain: str
    bounds: AutoscalerBounds = field(default_factory=AutoscalerBounds)


class Deployer:
    """Runs one deployment request through every stage, failing fast."""

    def __init__(self, config: DeployerConfig):
        self.config = config
        self.fetcher = ConfigFetcher(config.http_client)

    def fasit_client(self, req: DeploymentRequest) -> FasitClient:
        return FasitClient(
            self.config.fasit_url,
            req.username,
            req.password,
            self.config.http_client,
        )

    async def deploy(self, req: DeploymentRequest) -> List[str]:
        bind_deployment_context(req.application, req.environment, req.namespace)

        violations = validate(req)
        if violations:
            logger.info("Deployment request rejected", violations=violations)
            DEPLOYMENT_COUNT.labels(outcome="invalid").inc()
            raise DeploymentValidationError(violations)

        try:
            config = await self.fetcher.fetch(req.appConfigUrl)

            resolved = await self.fasit_client(req).get_resources(
                config.resource_requests,
                req.environment,
                req.application,
                req.zone,
            )

            objects = synthesize(
                config,
                resolved,
                req,
                cluster_domain=self.config.cluster_domain,
                bounds=self.config.bounds,
            )

            actions = await asyncio.to_thread(apply, objects, self.config.cluster_client)
        except NaisdError as e:
            logger.error("Deployment failed", error_type=e.__class__.__name__, error=str(e))
            DEPLOYMENT_COUNT.labels(outcome="failed").inc()
            raise

        logger.info("Deployment applied", actions=actions)
        DEPLOYMENT_COUNT.labels(outcome="succeeded").inc()
        return actions
