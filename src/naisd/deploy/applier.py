"""Apply a synthesized object set in dependency order."""

from __future__ import annotations

from typing import List

import structlog

from naisd.core.exceptions import ApplyError
from naisd.deploy.cluster import ClusterClient
from naisd.deploy.models import ClusterObjectSet

logger = structlog.get_logger()


def apply(objects: ClusterObjectSet, client: ClusterClient) -> List[str]:
    """Create or update each object; later objects may reference earlier ones.

    Stops at the first failure and raises ApplyError carrying the actions
    that already succeeded. Nothing is rolled back.
    """
    steps = [
        ("deployment", client.create_or_update_deployment, objects.deployment),
        ("service", client.create_or_update_service, objects.service),
        ("ingress", client.create_or_update_ingress, objects.ingress),
        ("autoscaler", client.create_or_update_autoscaler, objects.autoscaler),
    ]

    applied: List[str] = []
    for kind, create_or_update, manifest in steps:
        try:
            create_or_update(objects.namespace, manifest)
        except Exception as e:
            logger.error("Failed to apply object", kind=kind, applied=applied, error=str(e))
            raise ApplyError(f"Failed to apply {kind}: {e}", applied) from e
        applied.append(f"created {kind}")

    return applied
