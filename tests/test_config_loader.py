"""Tests for pscdeploy.yml / .env configuration loading."""

import pytest

from pscdeploy.core.config_loader import ConfigLoader, TopologyConfig
from pscdeploy.exceptions import ConfigurationError


def write(path, text):
    path.write_text(text)
    return path


class TestTopologyConfig:
    def test_defaults(self, tmp_path):
        config = TopologyConfig(tmp_path)

        assert config.terraform_dir == tmp_path / "terraform"
        assert config.manifests_dir == tmp_path / "k8s-manifests"
        assert config.tfvars_path == tmp_path / "terraform" / "terraform.tfvars"
        assert config.cluster.name == "gke-cluster-b"
        assert config.psc.neg == "psc-neg-a"
        assert config.polling.interval == 10.0
        assert config.polling.max_attempts == 60
        assert config.teardown.settle_delay == 30.0
        assert config.terraform.outputs["public_address"] == "external_lb_ip"

    def test_manifest_resolution(self, tmp_path):
        config = TopologyConfig(tmp_path)

        assert config.manifest("flask-app.yaml") == str(
            tmp_path / "k8s-manifests" / "flask-app.yaml"
        )
        url = "https://example.com/deploy.yaml"
        assert config.manifest(url) == url

    def test_partial_output_mapping_keeps_defaults(self, tmp_path):
        config = TopologyConfig(
            tmp_path, {"terraform": {"outputs": {"public_address": "edge_ip"}}}
        )

        assert config.terraform.outputs["public_address"] == "edge_ip"
        assert config.terraform.outputs["edge_project"] == "project_a"

    def test_absolute_paths_are_kept(self, tmp_path):
        other = tmp_path / "elsewhere"
        config = TopologyConfig(tmp_path / "root", {"terraform": {"dir": str(other)}})

        assert config.terraform_dir == other

    def test_unknown_section(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Unknown configuration section"):
            TopologyConfig(tmp_path, {"database": {}})

    def test_unknown_key(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Unknown key"):
            TopologyConfig(tmp_path, {"polling": {"retries": 3}})

    def test_section_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            TopologyConfig(tmp_path, {"psc": ["psc-neg-a"]})

    def test_rejects_zero_attempts(self, tmp_path):
        with pytest.raises(ConfigurationError, match="max_attempts"):
            TopologyConfig(tmp_path, {"polling": {"max_attempts": 0}})

    def test_rejects_negative_delay(self, tmp_path):
        with pytest.raises(ConfigurationError):
            TopologyConfig(tmp_path, {"teardown": {"settle_delay": -1}})

    def test_rejects_blank_output_name(self, tmp_path):
        with pytest.raises(ConfigurationError, match="zone"):
            TopologyConfig(tmp_path, {"terraform": {"outputs": {"zone": ""}}})

    @pytest.mark.parametrize(
        "raw, match",
        [
            ({"polling": {"max_attempts": "ten"}}, "polling.max_attempts"),
            ({"polling": {"interval": "10"}}, "polling.interval"),
            ({"polling": {"max_attempts": 2.5}}, "polling.max_attempts"),
            ({"teardown": {"settle_delay": True}}, "teardown.settle_delay"),
            ({"cluster": {"ingress_timeout": "300s"}}, "cluster.ingress_timeout"),
            ({"cluster": {"name": ["gke"]}}, "cluster.name"),
            ({"logs": "x"}, "'logs' section"),
            ({"logs": {"path": "out"}}, "Unknown key"),
            ({"logs": {"dir": 7}}, "logs.dir"),
            ({"terraform": {"outputs": ["a"]}}, "terraform.outputs"),
            ({"terraform": {"outputs": {"edge_ip": "ip"}}}, "Unknown key"),
            ({"terraform": {"outputs": {"zone": 3}}}, "terraform.outputs.zone"),
        ],
    )
    def test_rejects_invalid_values(self, tmp_path, raw, match):
        with pytest.raises(ConfigurationError, match=match) as exc_info:
            TopologyConfig(tmp_path, raw)

        assert exc_info.value.context

    def test_integer_widens_to_float(self, tmp_path):
        config = TopologyConfig(tmp_path, {"polling": {"interval": 3}})

        assert isinstance(config.polling.interval, float)
        assert config.polling.interval == 3.0

    def test_custom_log_dir(self, tmp_path):
        config = TopologyConfig(tmp_path, {"logs": {"dir": "run-logs"}})

        assert config.logs_dir == tmp_path / "run-logs"


class TestConfigLoader:
    def test_no_files_gives_defaults(self, tmp_path):
        config = ConfigLoader(tmp_path, environ={}).load()

        assert config.cluster.name == "gke-cluster-b"

    def test_reads_yaml(self, tmp_path):
        write(
            tmp_path / "pscdeploy.yml",
            "cluster:\n"
            "  name: edge-cluster\n"
            "psc:\n"
            "  backend_service: public-backend\n"
            "polling:\n"
            "  interval: 5\n",
        )

        config = ConfigLoader(tmp_path, environ={}).load()

        assert config.cluster.name == "edge-cluster"
        assert config.psc.backend_service == "public-backend"
        assert config.polling.interval == 5

    def test_empty_yaml(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", "")

        assert ConfigLoader(tmp_path, environ={}).load().psc.neg == "psc-neg-a"

    def test_invalid_yaml(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", "cluster: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Failed to parse"):
            ConfigLoader(tmp_path, environ={}).load()

    def test_yaml_must_be_mapping(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", "- one\n- two\n")

        with pytest.raises(ConfigurationError, match="top level"):
            ConfigLoader(tmp_path, environ={}).load()

    def test_env_file_overrides_yaml(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", "polling:\n  max_attempts: 10\n")
        write(tmp_path / ".env", "PSCDEPLOY_POLL_ATTEMPTS=3\nUNRELATED=1\n")

        config = ConfigLoader(tmp_path, environ={}).load()

        assert config.polling.max_attempts == 3

    def test_process_environment_wins(self, tmp_path):
        write(tmp_path / ".env", "PSCDEPLOY_SETTLE_DELAY=5\n")

        config = ConfigLoader(
            tmp_path,
            environ={"PSCDEPLOY_SETTLE_DELAY": "0", "PSCDEPLOY_TERRAFORM_DIR": "infra"},
        ).load()

        assert config.teardown.settle_delay == 0.0
        assert config.terraform_dir == tmp_path / "infra"

    def test_log_dir_override(self, tmp_path):
        config = ConfigLoader(tmp_path, environ={"PSCDEPLOY_LOG_DIR": "out"}).load()

        assert config.logs_dir == tmp_path / "out"

    def test_bad_env_value(self, tmp_path):
        with pytest.raises(ConfigurationError, match="PSCDEPLOY_POLL_ATTEMPTS"):
            ConfigLoader(tmp_path, environ={"PSCDEPLOY_POLL_ATTEMPTS": "many"}).load()

    def test_quoted_number_in_yaml(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", 'cluster:\n  app_timeout: "120s"\n')

        with pytest.raises(ConfigurationError, match="cluster.app_timeout"):
            ConfigLoader(tmp_path, environ={}).load()

    def test_override_into_non_mapping_section(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", "logs: out\n")

        with pytest.raises(ConfigurationError, match="must be a mapping"):
            ConfigLoader(tmp_path, environ={"PSCDEPLOY_LOG_DIR": "x"}).load()

    def test_null_section_with_override(self, tmp_path):
        write(tmp_path / "pscdeploy.yml", "polling:\n")

        config = ConfigLoader(
            tmp_path, environ={"PSCDEPLOY_POLL_INTERVAL": "2.5"}
        ).load()

        assert config.polling.interval == 2.5
