"""naisd - deployment daemon resolving Fasit resources into Kubernetes objects."""

__version__ = "0.1.0"

from naisd.core.config import Settings
from naisd.deploy.models import AppConfig, DeploymentRequest, ResolvedResource

__all__ = ["Settings", "AppConfig", "DeploymentRequest", "ResolvedResource", "__version__"]
