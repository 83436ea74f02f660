"""Models flowing through the deployment pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Zone(str, Enum):
    FSS = "fss"
    SBS = "sbs"


class DeploymentRequest(BaseModel):
    """Inbound deploy payload.

    Every field defaults to the empty string so that absent keys are
    reported by the validator instead of failing decoding.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    application: str = ""
    version: str = ""
    environment: str = ""
    appConfigUrl: str = ""
    zone: str = ""
    namespace: str = ""
    username: str = ""
    password: str = Field("", repr=False)


class ResourceRequest(BaseModel):
    """A single Fasit dependency declared by the application."""

    model_config = ConfigDict(frozen=True)

    alias: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class FasitResources(BaseModel):
    model_config = ConfigDict(frozen=True)

    used: List[ResourceRequest] = Field(default_factory=list)


class Replicas(BaseModel):
    """Autoscaling bounds an application may request for itself."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(..., ge=1)
    max: int = Field(..., ge=1)
    cpuThresholdPercentage: int = Field(50, ge=1, le=100)

    @model_validator(mode="after")
    def check_bounds(self) -> "Replicas":
        if self.min > self.max:
            raise ValueError(f"replicas.min ({self.min}) exceeds replicas.max ({self.max})")
        return self


class HealthEndpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1)
    initialDelay: int = Field(20, ge=0)


class Healthcheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    liveness: Optional[HealthEndpoint] = None
    readiness: Optional[HealthEndpoint] = None


class AppConfig(BaseModel):
    """Application config document (app-config.yaml)."""

    model_config = ConfigDict(frozen=True)

    image: str = Field(..., min_length=1, description="Container image reference")
    port: int = Field(..., ge=1, le=65535, description="Container port")
    fasitResources: FasitResources = Field(default_factory=FasitResources)
    replicas: Optional[Replicas] = None
    healthcheck: Optional[Healthcheck] = None

    @property
    def resource_requests(self) -> List[ResourceRequest]:
        return list(self.fasitResources.used)


class ResolvedResource(BaseModel):
    """Fasit's answer for one ResourceRequest."""

    model_config = ConfigDict(frozen=True)

    name: str
    resourceType: str
    properties: Dict[str, str] = Field(default_factory=dict)
    secret: Dict[str, str] = Field(default_factory=dict, repr=False)


class AutoscalerBounds(BaseModel):
    """Horizontal scaling bounds handed to the synthesizer."""

    model_config = ConfigDict(frozen=True)

    min_replicas: int = Field(2, ge=1)
    max_replicas: int = Field(4, ge=1)
    cpu_target_percentage: int = Field(50, ge=1, le=100)

    @model_validator(mode="after")
    def check_bounds(self) -> "AutoscalerBounds":
        if self.min_replicas > self.max_replicas:
            raise ValueError("min_replicas exceeds max_replicas")
        return self


class ClusterObjectSet(BaseModel):
    """Kubernetes objects ready to apply, in API object form."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    deployment: Dict[str, Any]
    service: Dict[str, Any]
    ingress: Dict[str, Any]
    autoscaler: Dict[str, Any]
