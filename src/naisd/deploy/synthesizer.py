"""Build Kubernetes objects from an app config and its resolved resources.

Everything here is pure: identical inputs always produce identical objects.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

from naisd.core.exceptions import SynthesisConflictError
from naisd.deploy.models import (
    AppConfig,
    AutoscalerBounds,
    ClusterObjectSet,
    DeploymentRequest,
    HealthEndpoint,
    ResolvedResource,
)


SERVICE_PORT = 80

_NON_ENV_CHARS = re.compile(r"[^A-Za-z0-9]")


def env_var_name(alias: str, key: str) -> str:
    """``alias`` + ``key`` as an environment variable name, e.g. ``DB_URL``.

    Names never start with a digit; ``1db`` + ``url`` becomes ``_1DB_URL``.
    """
    name = _NON_ENV_CHARS.sub("_", f"{alias}_{key}").upper()
    if name[0].isdigit():
        name = "_" + name
    return name


def build_env(resolved: Sequence[ResolvedResource]) -> List[Dict[str, str]]:
    """Project every property and secret into environment variables.

    Raises SynthesisConflictError when two entries map to the same name.
    """
    env: Dict[str, str] = {}
    origin: Dict[str, str] = {}

    for resource in resolved:
        entries = list(resource.properties.items()) + list(resource.secret.items())
        for key, value in entries:
            name = env_var_name(resource.name, key)
            source = f"{resource.name}.{key}"
            if name in env:
                raise SynthesisConflictError(
                    f"{source} and {origin[name]} both map to environment variable {name}"
                )
            env[name] = value
            origin[name] = source

    return [{"name": name, "value": env[name]} for name in sorted(env)]


def image_reference(image: str, version: str) -> str:
    if not version:
        return image
    # A colon after the last slash means the image already carries a tag
    if ":" in image.rsplit("/", 1)[-1] or "@" in image:
        return image
    return f"{image}:{version}"


def _labels(req: DeploymentRequest) -> Dict[str, str]:
    return {"app": req.application}


def _metadata(req: DeploymentRequest, extra_labels: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    labels = _labels(req)
    if extra_labels:
        labels.update(extra_labels)
    return {"name": req.application, "namespace": req.namespace, "labels": labels}


def _health_check(endpoint: HealthEndpoint, port: int) -> Dict[str, Any]:
    return {
        "httpGet": {"path": endpoint.path, "port": port},
        "initialDelaySeconds": endpoint.initialDelay,
    }


def build_deployment(
    config: AppConfig,
    resolved: Sequence[ResolvedResource],
    req: DeploymentRequest,
) -> Dict[str, Any]:
    container: Dict[str, Any] = {
        "name": req.application,
        "image": image_reference(config.image, req.version),
        "ports": [{"name": "http", "containerPort": config.port, "protocol": "TCP"}],
        "env": build_env(resolved),
    }
    if config.healthcheck:
        if config.healthcheck.liveness:
            container["livenessProbe"] = _health_check(config.healthcheck.liveness, config.port)
        if config.healthcheck.readiness:
            container["readinessProbe"] = _health_check(config.healthcheck.readiness, config.port)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": _metadata(req),
        "spec": {
            "selector": {"matchLabels": _labels(req)},
            "template": {
                "metadata": {"name": req.application, "labels": _labels(req)},
                "spec": {"containers": [container]},
            },
        },
    }


def build_service(config: AppConfig, req: DeploymentRequest) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": _metadata(req),
        "spec": {
            "type": "ClusterIP",
            "selector": _labels(req),
            "ports": [
                {
                    "name": "http",
                    "protocol": "TCP",
                    "port": SERVICE_PORT,
                    "targetPort": config.port,
                }
            ],
        },
    }


def ingress_host(req: DeploymentRequest, cluster_domain: str) -> str:
    return f"{req.application}-{req.environment}.{cluster_domain}"


def build_ingress(req: DeploymentRequest, cluster_domain: str) -> Dict[str, Any]:
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": _metadata(req, {"environment": req.environment, "zone": req.zone}),
        "spec": {
            "rules": [
                {
                    "host": ingress_host(req, cluster_domain),
                    "http": {
                        "paths": [
                            {
                                "path": "/",
                                "pathType": "Prefix",
                                "backend": {
                                    "service": {
                                        "name": req.application,
                                        "port": {"number": SERVICE_PORT},
                                    }
                                },
                            }
                        ]
                    },
                }
            ]
        },
    }


def build_autoscaler(config: AppConfig, req: DeploymentRequest, bounds: AutoscalerBounds) -> Dict[str, Any]:
    min_replicas = bounds.min_replicas
    max_replicas = bounds.max_replicas
    cpu_target = bounds.cpu_target_percentage
    if config.replicas:
        min_replicas = config.replicas.min
        max_replicas = config.replicas.max
        cpu_target = config.replicas.cpuThresholdPercentage

    return {
        "apiVersion": "autoscaling/v1",
        "kind": "HorizontalPodAutoscaler",
        "metadata": _metadata(req),
        "spec": {
            "scaleTargetRef": {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "name": req.application,
            },
            "minReplicas": min_replicas,
            "maxReplicas": max_replicas,
            "targetCPUUtilizationPercentage": cpu_target,
        },
    }


def synthesize(
    config: AppConfig,
    resolved: Sequence[ResolvedResource],
    req: DeploymentRequest,
    *,
    cluster_domain: str,
    bounds: AutoscalerBounds,
) -> ClusterObjectSet:
    """Build the full object set for one deployment."""
    return ClusterObjectSet(
        namespace=req.namespace,
        deployment=build_deployment(config, resolved, req),
        service=build_service(config, req),
        ingress=build_ingress(req, cluster_domain),
        autoscaler=build_autoscaler(config, req, bounds),
    )
