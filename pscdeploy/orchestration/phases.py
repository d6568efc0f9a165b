"""
Topology Phases

The seven phases of the cross-project topology, each with its forward
action and (where one exists) its inverse. Deploy and teardown share this
single declaration so their orders can never drift apart.
"""

from typing import List, Optional

from pscdeploy.core.config_loader import TopologyConfig
from pscdeploy.core.phases import Phase
from pscdeploy.core.readiness import ReadinessPoller
from pscdeploy.exceptions import ResourceStepError
from pscdeploy.infra.gcloud import ComputeClient, ResourceKind
from pscdeploy.infra.kubernetes import ClusterManager
from pscdeploy.infra.terraform import TerraformManager
from pscdeploy.logger import DeployLogger
from pscdeploy.models.context import (
    FORWARDING_RULE,
    INTERNAL_ADDRESS,
    PUBLIC_ADDRESS,
    SERVICE_ATTACHMENT_URI,
    DeploymentContext,
)
from pscdeploy.steps.backends import BackendWiring
from pscdeploy.steps.resources import (
    CapabilityChange,
    ImperativeResourceStep,
    ResourceDescriptor,
)

INFRA_APPLY = "Infrastructure"
CLUSTER_BIND = "Cluster credentials"
INGRESS_INSTALL = "Ingress controller"
INTERNAL_EXPOSURE = "Internal load balancer"
SERVICE_CONNECTION = "Private Service Connect"
BACKEND_WIRING = "Backend wiring"
WORKLOAD_APPLY = "Application"

PHASE_ORDER = [
    INFRA_APPLY,
    CLUSTER_BIND,
    INGRESS_INSTALL,
    INTERNAL_EXPOSURE,
    SERVICE_CONNECTION,
    BACKEND_WIRING,
    WORKLOAD_APPLY,
]

# Phases whose inverse talks to the cluster through kubectl
CLUSTER_PHASES = {INGRESS_INSTALL, INTERNAL_EXPOSURE, WORKLOAD_APPLY}

GLOBAL_ACCESS = CapabilityChange(
    attribute="allowGlobalAccess",
    desired=True,
    update_args=["--allow-global-access"],
)


class TopologyPhases:
    """Binds config and external facades into the phase list."""

    def __init__(
        self,
        config: TopologyConfig,
        terraform: TerraformManager,
        cluster: ClusterManager,
        compute: ComputeClient,
        poller: ReadinessPoller,
        logger: Optional[DeployLogger] = None,
        auto_approve: bool = False,
    ):
        self.config = config
        self.terraform = terraform
        self.cluster = cluster
        self.compute = compute
        self.poller = poller
        self.logger = logger
        self.auto_approve = auto_approve
        self.steps = ImperativeResourceStep(compute, logger)
        self.wiring = BackendWiring(compute, logger)

    def build(self) -> List[Phase]:
        return [
            Phase(
                INFRA_APPLY,
                self.apply_infrastructure,
                self.destroy_infrastructure,
                fatal_inverse=True,
                settle_before_inverse=self.config.teardown.settle_delay,
            ),
            Phase(CLUSTER_BIND, self.bind_cluster),
            Phase(INGRESS_INSTALL, self.install_ingress, self.uninstall_ingress),
            Phase(INTERNAL_EXPOSURE, self.expose_internal, self.remove_internal),
            Phase(SERVICE_CONNECTION, self.connect_service, self.disconnect_service),
            Phase(BACKEND_WIRING, self.wire_backend, self.unwire_backend),
            Phase(WORKLOAD_APPLY, self.apply_workload, self.delete_workload),
        ]

    # Infrastructure

    def apply_infrastructure(self, context: DeploymentContext) -> DeploymentContext:
        self.terraform.init()
        outputs = self.terraform.apply(auto_approve=self.auto_approve)
        names = self.config.terraform.outputs

        context = context.with_domains(
            edge_project=outputs.require(names["edge_project"]),
            backend_project=outputs.require(names["backend_project"]),
            region=outputs.require(names["region"]),
            zone=outputs.require(names["zone"]),
        ).with_values(**{PUBLIC_ADDRESS: outputs.require(names["public_address"])})

        self._success(f"Edge project: {context.edge_project}")
        self._success(f"Backend project: {context.backend_project}")
        self._success(f"External IP: {context.require(PUBLIC_ADDRESS)}")
        return context

    def destroy_infrastructure(self, context: DeploymentContext) -> None:
        self.terraform.destroy(auto_approve=self.auto_approve)

    def recover_context(self) -> DeploymentContext:
        """
        Rebuild the domain identifiers from persisted Terraform outputs.

        Raises:
            TerraformError: If outputs cannot be read
            ConfigurationError: If a project id output is missing
        """
        outputs = self.terraform.get_outputs()
        names = self.config.terraform.outputs
        context = DeploymentContext().with_domains(
            edge_project=outputs.require(names["edge_project"]),
            backend_project=outputs.require(names["backend_project"]),
            region=outputs.get_value(names["region"]) or self.config.defaults.region,
            zone=outputs.get_value(names["zone"]) or self.config.defaults.zone,
        )
        public_address = outputs.get_value(names["public_address"])
        if public_address:
            context = context.with_values(**{PUBLIC_ADDRESS: public_address})
        return context

    # Cluster

    def bind_cluster(self, context: DeploymentContext) -> DeploymentContext:
        self.cluster.get_credentials(
            self.config.cluster.name, context.zone, context.backend_project
        )
        self._success(f"kubectl configured for {self.config.cluster.name}")
        return context

    def install_ingress(self, context: DeploymentContext) -> DeploymentContext:
        cluster = self.config.cluster
        self.cluster.apply(self.config.manifest(cluster.ingress_manifest))
        self.cluster.wait_ready(
            cluster.controller_selector,
            cluster.ingress_timeout,
            namespace=cluster.ingress_namespace,
        )
        self._success("Ingress controller is running")
        return context

    def uninstall_ingress(self, context: DeploymentContext) -> None:
        self.cluster.delete(self.config.manifest(self.config.cluster.ingress_manifest))

    def expose_internal(self, context: DeploymentContext) -> DeploymentContext:
        cluster = self.config.cluster
        polling = self.config.polling
        self.cluster.apply(self.config.manifest(cluster.internal_service_manifest))

        address = self.poller.wait_for(
            lambda: self.cluster.get_load_balancer_ip(
                cluster.controller_service, cluster.ingress_namespace
            ),
            interval=polling.interval,
            max_attempts=polling.max_attempts,
            description="internal load balancer address",
        )
        self._success(f"Internal LB IP: {address}")
        return context.with_values(**{INTERNAL_ADDRESS: address})

    def remove_internal(self, context: DeploymentContext) -> None:
        self.cluster.delete(
            self.config.manifest(self.config.cluster.internal_service_manifest)
        )

    # Private Service Connect

    def forwarding_rule(self, context: DeploymentContext, name: str) -> ResourceDescriptor:
        return ResourceDescriptor(
            ResourceKind.FORWARDING_RULE, name, context.backend_project, context.region
        )

    def service_attachment(
        self, context: DeploymentContext, forwarding_rule: Optional[str] = None
    ) -> ResourceDescriptor:
        psc = self.config.psc
        create_args = []
        if forwarding_rule:
            create_args = [
                f"--producer-forwarding-rule={forwarding_rule}",
                f"--connection-preference={psc.connection_preference}",
                f"--nat-subnets={psc.nat_subnet}",
            ]
        return ResourceDescriptor(
            ResourceKind.SERVICE_ATTACHMENT,
            psc.service_attachment,
            context.backend_project,
            context.region,
            create_args,
        )

    def endpoint_group(self, context: DeploymentContext) -> ResourceDescriptor:
        target = self.service_attachment(context).uri
        return ResourceDescriptor(
            ResourceKind.NETWORK_ENDPOINT_GROUP,
            self.config.psc.neg,
            context.edge_project,
            context.region,
            [
                "--network-endpoint-type=PRIVATE_SERVICE_CONNECT",
                f"--psc-target-service={target}",
            ],
        )

    def backend_service(self, context: DeploymentContext) -> ResourceDescriptor:
        return ResourceDescriptor(
            ResourceKind.BACKEND_SERVICE,
            self.config.psc.backend_service,
            context.edge_project,
        )

    def find_forwarding_rule(self, context: DeploymentContext) -> str:
        """
        Find the internal LB forwarding rule by its address.

        Raises:
            ResourceStepError: If no rule carries the address
        """
        address = context.require(INTERNAL_ADDRESS)
        names = self.compute.list_names(
            ResourceKind.FORWARDING_RULE,
            context.backend_project,
            context.region,
            f"IPAddress={address}",
        )
        if not names:
            raise ResourceStepError(
                f"No forwarding rule found for internal address {address}",
                context=f"Project: {context.backend_project}, region: {context.region}",
            )
        return names[0]

    def connect_service(self, context: DeploymentContext) -> DeploymentContext:
        rule_name = self.find_forwarding_rule(context)
        self._success(f"Internal LB forwarding rule: {rule_name}")

        self.steps.mutate(self.forwarding_rule(context, rule_name), GLOBAL_ACCESS)
        self._success("Global access enabled")

        attachment = self.service_attachment(context, rule_name)
        self._report(self.steps.ensure_exists(attachment), "PSC service attachment")

        self._report(
            self.steps.ensure_exists(self.endpoint_group(context)),
            "PSC network endpoint group",
        )

        return context.with_values(
            **{FORWARDING_RULE: rule_name, SERVICE_ATTACHMENT_URI: attachment.uri}
        )

    def disconnect_service(self, context: DeploymentContext) -> None:
        # Consumer side first, it references the producer
        errors = []
        for descriptor in (
            self.endpoint_group(context),
            self.service_attachment(context),
        ):
            try:
                self.steps.remove(descriptor)
            except ResourceStepError as e:
                errors.append(str(e))

        if errors:
            raise ResourceStepError(
                "Could not remove all service connection resources",
                context="\n".join(errors),
            )

    # Backend service

    def wire_backend(self, context: DeploymentContext) -> DeploymentContext:
        outcome = self.wiring.attach(
            self.backend_service(context), self.endpoint_group(context)
        )
        self._report(outcome, "PSC backend", created="attached")
        return context

    def unwire_backend(self, context: DeploymentContext) -> None:
        self.wiring.detach(self.backend_service(context), self.endpoint_group(context))

    # Application

    def apply_workload(self, context: DeploymentContext) -> DeploymentContext:
        cluster = self.config.cluster
        self.cluster.apply(self.config.manifest(cluster.app_manifest))
        self.cluster.wait_ready(cluster.app_selector, cluster.app_timeout)
        self._success("Application pods are ready")
        return context

    def delete_workload(self, context: DeploymentContext) -> None:
        self.cluster.delete(self.config.manifest(self.config.cluster.app_manifest))

    def _report(self, outcome, what: str, created: str = "created") -> None:
        if outcome.is_noop:
            self._success(f"{what} (already exists)")
        else:
            self._success(f"{what} {created}")

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)
