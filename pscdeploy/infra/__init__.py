"""
External system facades: terraform, kubectl and gcloud.
"""

from .runner import CommandRunner
from .terraform import TerraformManager, TerraformOutputs
from .kubernetes import ClusterManager
from .gcloud import ComputeClient, ResourceKind, resource_uri

__all__ = [
    "CommandRunner",
    "TerraformManager",
    "TerraformOutputs",
    "ClusterManager",
    "ComputeClient",
    "ResourceKind",
    "resource_uri",
]
