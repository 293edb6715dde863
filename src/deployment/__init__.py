"""
Stack lifecycle commands: up, preview and destroy.
"""

from .base_deployer import (
    ApplyOutcome,
    BaseDeployer,
    DeploymentResult,
    DeploymentStatus,
    Presenter,
)
from .destroy import DestroyDeployer
from .preview import PreviewDeployer
from .template import TemplateRenderer
from .up import UpDeployer

__all__ = [
    "ApplyOutcome",
    "BaseDeployer",
    "DeploymentResult",
    "DeploymentStatus",
    "Presenter",
    "DestroyDeployer",
    "PreviewDeployer",
    "TemplateRenderer",
    "UpDeployer",
]
