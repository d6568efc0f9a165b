"""
CLI Utilities

Working-root discovery and pre-flight checks.
"""

import shutil
from pathlib import Path
from typing import List, Optional

from pscdeploy.constants import REQUIRED_TOOLS, TFVARS_FILENAME
from pscdeploy.core.config_loader import TopologyConfig
from pscdeploy.exceptions import PrerequisiteMissingError
from pscdeploy.models.results import ValidationResult


def get_root(root: Optional[str] = None) -> Path:
    """Working root holding terraform/ and k8s-manifests/ (defaults to cwd)."""
    return Path(root).expanduser().resolve() if root else Path.cwd()


def missing_tools(tools: Optional[List[str]] = None) -> List[str]:
    """Tools that are not on PATH."""
    return [tool for tool in (tools or REQUIRED_TOOLS) if shutil.which(tool) is None]


def check_prerequisites(
    config: TopologyConfig, require_tfvars: bool = True
) -> ValidationResult:
    """
    Check tools and input files without raising.

    Args:
        config: Loaded topology configuration
        require_tfvars: Deploy needs terraform.tfvars and the manifests;
            teardown reads state only
    """
    result = ValidationResult(is_valid=True)

    for tool in missing_tools():
        result.add_error(f"{tool} is not installed")

    if not config.terraform_dir.is_dir():
        result.add_error(f"Terraform directory not found: {config.terraform_dir}")
    elif require_tfvars and not config.tfvars_path.exists():
        result.add_error(f"{TFVARS_FILENAME} not found in {config.terraform_dir}")

    for manifest in (
        config.cluster.internal_service_manifest,
        config.cluster.app_manifest,
    ):
        path = config.manifest(manifest)
        if "://" not in path and not Path(path).exists():
            if require_tfvars:
                result.add_error(f"Manifest not found: {path}")
            else:
                result.add_warning(f"Manifest not found: {path}")

    return result


def ensure_prerequisites(config: TopologyConfig, require_tfvars: bool = True) -> None:
    """
    Pre-flight check before any external call.

    Raises:
        PrerequisiteMissingError: If a tool or required file is missing
    """
    result = check_prerequisites(config, require_tfvars=require_tfvars)
    if result.has_errors:
        hint = None
        if require_tfvars and not config.tfvars_path.exists():
            hint = (
                f"cp {config.tfvars_path}.example {config.tfvars_path} "
                "and set your GCP project IDs"
            )
        raise PrerequisiteMissingError(result.errors, hint)
