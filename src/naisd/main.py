"""Main entry point for naisd."""

import signal
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from naisd import __version__
from naisd.api.deploy import router as deploy_router
from naisd.api.health import router as health_router
from naisd.api.middleware import (
    setup_error_handling,
    setup_logging_middleware,
    setup_metrics_middleware,
)
from naisd.core.config import Settings
from naisd.core.exceptions import ConfigurationError
from naisd.deploy.cluster import ClusterClient, InMemoryClusterClient, KubectlClusterClient
from naisd.deploy.models import AutoscalerBounds
from naisd.deploy.pipeline import Deployer, DeployerConfig
from naisd.utils.logging import setup_logging

logger = structlog.get_logger()


def build_cluster_client(settings: Settings) -> ClusterClient:
    """Pick the cluster client named by ``settings.cluster_mode``."""
    if settings.cluster_mode == "kubectl":
        return KubectlClusterClient(
            binary=settings.kubectl_binary,
            context=settings.kube_context,
            timeout=settings.kubectl_timeout_seconds,
        )
    if settings.cluster_mode == "memory":
        logger.warning("Using in-memory cluster client; nothing will be applied to a cluster")
        return InMemoryClusterClient()
    raise ConfigurationError(f"Unknown cluster mode: {settings.cluster_mode}")


def build_deployer_config(
    settings: Settings,
    http_client: httpx.AsyncClient,
    cluster_client: ClusterClient,
) -> DeployerConfig:
    return DeployerConfig(
        http_client=http_client,
        cluster_client=cluster_client,
        fasit_url=settings.fasit_url,
        cluster_domain=settings.cluster_domain,
        bounds=AutoscalerBounds(
            min_replicas=settings.autoscaler_min_replicas,
            max_replicas=settings.autoscaler_max_replicas,
            cpu_target_percentage=settings.autoscaler_cpu_target_percentage,
        ),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    cluster_client: Optional[ClusterClient] = None,
) -> FastAPI:
    """Create FastAPI application.

    ``http_client`` and ``cluster_client`` may be supplied to replace the
    outbound HTTP client and the cluster; otherwise they are built from
    ``settings`` when the application starts.
    """
    if settings is None:
        settings = Settings()

    setup_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting naisd", version=__version__, fasit_url=settings.fasit_url)

        owns_client = http_client is None
        client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(settings.request_timeout_seconds))
        cluster = cluster_client or build_cluster_client(settings)

        app.state.deployer = Deployer(build_deployer_config(settings, client, cluster))
        logger.info("Deployer initialized", cluster_mode=settings.cluster_mode)

        yield

        logger.info("Shutting down naisd")
        if owns_client:
            await client.aclose()

    app = FastAPI(
        title="naisd",
        version=__version__,
        description="Deploys applications with their Fasit resources to Kubernetes",
        lifespan=lifespan,
    )

    app.state.settings = settings

    setup_error_handling(app)
    setup_logging_middleware(app)
    setup_metrics_middleware(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(deploy_router, tags=["deploy"])

    if settings.metrics_enabled:
        metrics_app = make_asgi_app()
        app.mount("/metrics", metrics_app)

    return app


def run():
    """Run the application."""
    settings = Settings()

    def handle_sigterm(signum, frame):
        logger.info("Received SIGTERM, initiating graceful shutdown")
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_sigterm)

    config = uvicorn.Config(
        "naisd.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        reload=settings.reload,
        log_config=None,  # We handle logging ourselves
        access_log=False,  # Handled by middleware
    )

    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    run()
