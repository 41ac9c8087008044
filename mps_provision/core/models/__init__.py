"""
Domain models — Pydantic types for provisioning.

All models are re-exported here for convenient access:

    from mps_provision.core.models import InstallStep, Receipt, RuntimeCandidate
"""

from mps_provision.core.models.action import InstallStep, Receipt
from mps_provision.core.models.config import (
    HomebrewSettings,
    PackageSettings,
    ProvisionConfig,
    RuntimeSettings,
)
from mps_provision.core.models.outcome import StageOutcome
from mps_provision.core.models.runtime import (
    DependencySpec,
    RuntimeCandidate,
    RuntimeVersion,
    is_compatible,
)

__all__ = [
    # runtime.py
    "DependencySpec",
    # config.py
    "HomebrewSettings",
    # action.py
    "InstallStep",
    "PackageSettings",
    "ProvisionConfig",
    "Receipt",
    "RuntimeCandidate",
    "RuntimeSettings",
    "RuntimeVersion",
    # outcome.py
    "StageOutcome",
    "is_compatible",
]
