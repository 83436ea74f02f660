"""Configuration management for naisd."""

import os
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Daemon configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server configuration
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"), description="Server host")
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8081")), description="Server port")
    workers: int = Field(1, description="Number of worker processes")
    reload: bool = Field(False, description="Enable auto-reload in development")

    # Fasit
    fasit_url: str = Field(
        "https://fasit.local",
        description="Base URL of the Fasit resource registry",
    )

    # Cluster
    cluster_domain: str = Field(
        "nais.example.tk",
        description="Domain suffix for ingress hosts",
    )
    cluster_mode: str = Field(
        "kubectl",
        description="Cluster client: 'kubectl' applies for real, 'memory' keeps objects in-process",
    )
    kubectl_binary: str = Field("kubectl", description="kubectl executable")
    kube_context: Optional[str] = Field(None, description="kubectl context to apply against")
    kubectl_timeout_seconds: int = Field(30, description="Timeout for a single kubectl apply")

    # Autoscaler defaults
    autoscaler_min_replicas: int = Field(2, ge=1)
    autoscaler_max_replicas: int = Field(4, ge=1)
    autoscaler_cpu_target_percentage: int = Field(50, ge=1, le=100)

    # Outbound HTTP
    request_timeout_seconds: float = Field(30.0, description="Per-call timeout for config and Fasit requests")

    # Observability
    log_level: str = Field("INFO")
    log_format: str = Field("json")
    metrics_enabled: bool = Field(True)

    @field_validator("cluster_mode")
    @classmethod
    def validate_cluster_mode(cls, v: str) -> str:
        """Only the known cluster clients are accepted."""
        v = v.strip().lower()
        if v not in ("kubectl", "memory"):
            raise ValueError(f"cluster_mode must be 'kubectl' or 'memory', got {v!r}")
        return v

    @field_validator("fasit_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
