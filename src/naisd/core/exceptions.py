"""Custom exceptions for naisd."""

from typing import List, Optional


class NaisdError(Exception):
    """Base exception for all naisd errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class MalformedRequestError(NaisdError):
    """Deployment request body could not be decoded."""
    pass


class DeploymentValidationError(NaisdError):
    """Deployment request failed validation."""

    def __init__(self, violations: List[str]):
        super().__init__("; ".join(violations), code="validation_failed")
        self.violations = list(violations)


class ConfigFetchError(NaisdError):
    """Application config could not be retrieved."""
    pass


class ConfigDecodeError(ConfigFetchError):
    """Application config was retrieved but is not a valid document."""
    pass


class ResourceResolutionError(NaisdError):
    """Fasit resource lookup failed."""
    pass


class SecretResolutionError(ResourceResolutionError):
    """Secret referenced by a Fasit resource could not be fetched."""
    pass


class SynthesisConflictError(NaisdError):
    """Resolved resources project colliding keys into the workload."""
    pass


class ClusterError(NaisdError):
    """Cluster client rejected an object."""
    pass


class ApplyError(NaisdError):
    """Applying the object set stopped part-way through."""

    def __init__(self, message: str, applied: List[str]):
        super().__init__(message, code="apply_failed")
        self.applied = list(applied)


class ConfigurationError(NaisdError):
    """Configuration error."""
    pass
