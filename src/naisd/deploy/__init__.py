"""Deployment pipeline stages."""

from .models import (
    AppConfig,
    AutoscalerBounds,
    ClusterObjectSet,
    DeploymentRequest,
    ResolvedResource,
    ResourceRequest,
)
from .validator import validate
from .fetch import ConfigFetcher
from .fasit import FasitClient
from .synthesizer import synthesize
from .applier import apply
from .cluster import ClusterClient, InMemoryClusterClient, KubectlClusterClient
from .pipeline import Deployer, DeployerConfig

__all__ = [
    "AppConfig",
    "AutoscalerBounds",
    "ClusterObjectSet",
    "DeploymentRequest",
    "ResolvedResource",
    "ResourceRequest",
    "validate",
    "ConfigFetcher",
    "FasitClient",
    "synthesize",
    "apply",
    "ClusterClient",
    "InMemoryClusterClient",
    "KubectlClusterClient",
    "Deployer",
    "DeployerConfig",
]
