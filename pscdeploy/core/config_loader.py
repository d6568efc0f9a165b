"""Configuration management for pscdeploy topologies"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import dotenv_values

from pscdeploy import constants
from pscdeploy.exceptions import ConfigurationError


@dataclass
class TerraformConfig:
    """Terraform directory and the output names the orchestrators read"""

    dir: str = constants.DEFAULT_TERRAFORM_DIR
    outputs: Dict[str, str] = field(
        default_factory=lambda: {
            "edge_project": constants.OUTPUT_EDGE_PROJECT,
            "backend_project": constants.OUTPUT_BACKEND_PROJECT,
            "region": constants.OUTPUT_REGION,
            "zone": constants.OUTPUT_ZONE,
            "public_address": constants.OUTPUT_PUBLIC_ADDRESS,
        }
    )


@dataclass
class ClusterConfig:
    """GKE cluster and workload manifests"""

    name: str = constants.DEFAULT_CLUSTER_NAME
    manifests_dir: str = constants.DEFAULT_MANIFESTS_DIR
    ingress_manifest: str = constants.DEFAULT_INGRESS_MANIFEST
    ingress_namespace: str = constants.DEFAULT_INGRESS_NAMESPACE
    controller_service: str = constants.DEFAULT_CONTROLLER_SERVICE
    controller_selector: str = constants.DEFAULT_CONTROLLER_SELECTOR
    ingress_timeout: int = constants.DEFAULT_INGRESS_TIMEOUT
    internal_service_manifest: str = constants.DEFAULT_INTERNAL_SERVICE_MANIFEST
    app_manifest: str = constants.DEFAULT_APP_MANIFEST
    app_selector: str = constants.DEFAULT_APP_SELECTOR
    app_timeout: int = constants.DEFAULT_APP_TIMEOUT


@dataclass
class PscConfig:
    """Private Service Connect resource names"""

    service_attachment: str = constants.DEFAULT_SERVICE_ATTACHMENT
    nat_subnet: str = constants.DEFAULT_NAT_SUBNET
    connection_preference: str = constants.DEFAULT_CONNECTION_PREFERENCE
    neg: str = constants.DEFAULT_PSC_NEG
    backend_service: str = constants.DEFAULT_BACKEND_SERVICE


@dataclass
class PollingConfig:
    """Internal LB address polling budget"""

    interval: float = constants.DEFAULT_POLL_INTERVAL
    max_attempts: int = constants.DEFAULT_POLL_ATTEMPTS


@dataclass
class TeardownConfig:
    settle_delay: float = constants.DEFAULT_SETTLE_DELAY


@dataclass
class DefaultsConfig:
    """Fallbacks used by teardown when Terraform state lacks region/zone"""

    region: str = constants.DEFAULT_GCP_REGION
    zone: str = constants.DEFAULT_GCP_ZONE


# Environment overrides: variable -> (section, key, type)
ENV_OVERRIDES = {
    "PSCDEPLOY_TERRAFORM_DIR": ("terraform", "dir", str),
    "PSCDEPLOY_MANIFESTS_DIR": ("cluster", "manifests_dir", str),
    "PSCDEPLOY_POLL_INTERVAL": ("polling", "interval", float),
    "PSCDEPLOY_POLL_ATTEMPTS": ("polling", "max_attempts", int),
    "PSCDEPLOY_SETTLE_DELAY": ("teardown", "settle_delay", float),
    "PSCDEPLOY_LOG_DIR": ("logs", "dir", str),
}


def _coerce(key: str, value: Any, expected: type) -> Any:
    """Check a YAML value against its field type; ints widen to float."""
    if expected is str:
        valid = isinstance(value, str)
    elif expected is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, (int, float)) and not isinstance(value, bool)

    if not valid:
        raise ConfigurationError(
            f"Invalid value for {key}: expected {expected.__name__}",
            context=f"Got: {value!r}",
        )
    return expected(value)


class TopologyConfig:
    """Represents a loaded and validated topology configuration"""

    SECTIONS = {
        "terraform": TerraformConfig,
        "cluster": ClusterConfig,
        "psc": PscConfig,
        "polling": PollingConfig,
        "teardown": TeardownConfig,
        "defaults": DefaultsConfig,
    }

    def __init__(self, root: Path, config_dict: Optional[dict] = None):
        """
        Initialize topology configuration

        Args:
            root: Working root holding terraform/ and k8s-manifests/
            config_dict: Raw configuration dictionary from pscdeploy.yml
        """
        self.root = Path(root)
        self.raw_config = config_dict or {}
        self._validate()

        self.terraform: TerraformConfig = self._section("terraform")
        self.cluster: ClusterConfig = self._section("cluster")
        self.psc: PscConfig = self._section("psc")
        self.polling: PollingConfig = self._section("polling")
        self.teardown: TeardownConfig = self._section("teardown")
        self.defaults: DefaultsConfig = self._section("defaults")
        self.log_dir = self._log_dir()

        self._check_values()

    def _validate(self) -> None:
        """Validate top-level structure"""
        if not isinstance(self.raw_config, dict):
            raise ConfigurationError(
                "Invalid configuration: top level must be a mapping",
                context=f"Got: {type(self.raw_config).__name__}",
            )

        known = set(self.SECTIONS) | {"logs"}
        unknown = [key for key in self.raw_config if key not in known]
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration section(s): {', '.join(sorted(unknown))}",
                context=f"Valid sections: {', '.join(sorted(known))}",
            )

    def _section(self, name: str):
        section_cls = self.SECTIONS[name]
        values = self.raw_config.get(name) or {}
        if not isinstance(values, dict):
            raise ConfigurationError(f"Invalid '{name}' section: must be a mapping")

        allowed = {f.name for f in fields(section_cls)}
        unknown = [key for key in values if key not in allowed]
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) in '{name}': {', '.join(sorted(unknown))}",
                context=f"Valid keys: {', '.join(sorted(allowed))}",
            )

        types = {f.name: f.type for f in fields(section_cls)}
        checked = {}
        for key, value in values.items():
            if name == "terraform" and key == "outputs":
                checked[key] = self._outputs(value)
            else:
                checked[key] = _coerce(f"{name}.{key}", value, types[key])

        return section_cls(**checked)

    def _outputs(self, values: Any) -> Dict[str, str]:
        """Merge a partial output-name mapping over the defaults."""
        merged = TerraformConfig().outputs
        values = values or {}
        if not isinstance(values, dict):
            raise ConfigurationError(
                "Invalid 'terraform.outputs': must be a mapping",
                context=f"Got: {values!r}",
            )

        unknown = [key for key in values if key not in merged]
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) in 'terraform.outputs': {', '.join(sorted(map(str, unknown)))}",
                context=f"Valid keys: {', '.join(sorted(merged))}",
            )

        for key, value in values.items():
            merged[key] = _coerce(f"terraform.outputs.{key}", value, str)
        return merged

    def _log_dir(self) -> str:
        values = self.raw_config.get("logs") or {}
        if not isinstance(values, dict):
            raise ConfigurationError(
                "Invalid 'logs' section: must be a mapping", context=f"Got: {values!r}"
            )

        unknown = [key for key in values if key != "dir"]
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) in 'logs': {', '.join(sorted(map(str, unknown)))}",
                context="Valid keys: dir",
            )
        return _coerce("logs.dir", values.get("dir", constants.DEFAULT_LOG_DIR), str)

    def _check_values(self) -> None:
        if self.polling.max_attempts < 1:
            raise ConfigurationError(
                "polling.max_attempts must be at least 1",
                context=f"Got: {self.polling.max_attempts}",
            )
        if self.polling.interval < 0 or self.teardown.settle_delay < 0:
            raise ConfigurationError("Polling interval and settle delay must be >= 0")

        missing = [
            key
            for key in TerraformConfig().outputs
            if not self.terraform.outputs.get(key)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing Terraform output name(s): {', '.join(missing)}"
            )

    @property
    def terraform_dir(self) -> Path:
        return self._resolve(self.terraform.dir)

    @property
    def manifests_dir(self) -> Path:
        return self._resolve(self.cluster.manifests_dir)

    @property
    def logs_dir(self) -> Path:
        return self._resolve(self.log_dir)

    @property
    def tfvars_path(self) -> Path:
        return self.terraform_dir / constants.TFVARS_FILENAME

    def manifest(self, name: str) -> str:
        """Resolve a manifest reference; URLs pass through untouched."""
        if "://" in name:
            return name
        return str(self.manifests_dir / name)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        return candidate if candidate.is_absolute() else self.root / candidate


class ConfigLoader:
    """Loads pscdeploy.yml plus .env / environment overrides"""

    def __init__(self, root: Path, environ: Optional[Dict[str, str]] = None):
        self.root = Path(root)
        self.environ = os.environ if environ is None else environ

    def load(self) -> TopologyConfig:
        config_dict = self._read_yaml()
        self._apply_env_overrides(config_dict)
        return TopologyConfig(self.root, config_dict)

    def _read_yaml(self) -> dict:
        config_path = self.root / constants.CONFIG_FILENAME
        if not config_path.exists():
            return {}

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse {constants.CONFIG_FILENAME}", context=str(e)
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Invalid {constants.CONFIG_FILENAME}: top level must be a mapping"
            )
        return data

    def _env_values(self) -> Dict[str, str]:
        # Process environment wins over .env
        values: Dict[str, str] = {}
        env_file = self.root / constants.ENV_FILENAME
        if env_file.exists():
            values.update(
                {k: v for k, v in dotenv_values(env_file).items() if v is not None}
            )
        values.update({k: v for k, v in self.environ.items() if k in ENV_OVERRIDES})
        return values

    def _apply_env_overrides(self, config_dict: dict) -> None:
        for var, value in self._env_values().items():
            if var not in ENV_OVERRIDES:
                continue
            section, key, cast = ENV_OVERRIDES[var]
            try:
                converted = cast(value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid value for {var}", context=f"Got: {value!r}"
                )
            config_dict.setdefault(section, {})
            if config_dict[section] is None:
                config_dict[section] = {}
            if not isinstance(config_dict[section], dict):
                raise ConfigurationError(f"Invalid '{section}' section: must be a mapping")
            config_dict[section][key] = converted


def load_config(root: Path) -> TopologyConfig:
    """Load topology configuration for a working root."""
    return ConfigLoader(root).load()
