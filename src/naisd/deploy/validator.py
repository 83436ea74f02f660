"""Deployment request validation."""

from __future__ import annotations

from typing import List

from naisd.deploy.models import DeploymentRequest, Zone


# (field, label) pairs that must be non-empty
_REQUIRED_FIELDS = (
    ("application", "Application"),
    ("environment", "Environment"),
    ("appConfigUrl", "AppConfigUrl"),
    ("zone", "Zone"),
    ("namespace", "Namespace"),
    ("username", "Username"),
    ("password", "Password"),
)

_ZONES = {z.value for z in Zone}


def validate(req: DeploymentRequest) -> List[str]:
    """Return every violation found in ``req``; an empty list means valid."""
    violations: List[str] = []

    for field, label in _REQUIRED_FIELDS:
        if not getattr(req, field):
            violations.append(f"{label} is required and is empty")

    if req.zone not in _ZONES:
        violations.append("Zone can only be fss or sbs")

    return violations
