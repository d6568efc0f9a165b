"""
pscdeploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Config file names
CONFIG_FILENAME = "pscdeploy.yml"
ENV_FILENAME = ".env"
TFVARS_FILENAME = "terraform.tfvars"

# Default layout (relative to the working root)
DEFAULT_TERRAFORM_DIR = "terraform"
DEFAULT_MANIFESTS_DIR = "k8s-manifests"
DEFAULT_LOG_DIR = "logs"

# Default GCP Configuration
DEFAULT_GCP_REGION = "us-central1"
DEFAULT_GCP_ZONE = "us-central1-a"

# Terraform output names
OUTPUT_EDGE_PROJECT = "project_a"
OUTPUT_BACKEND_PROJECT = "project_b"
OUTPUT_REGION = "region"
OUTPUT_ZONE = "zone"
OUTPUT_PUBLIC_ADDRESS = "external_lb_ip"

# Cluster
DEFAULT_CLUSTER_NAME = "gke-cluster-b"
DEFAULT_INGRESS_MANIFEST = (
    "https://raw.githubusercontent.com/kubernetes/ingress-nginx/"
    "controller-v1.12.0/deploy/static/provider/cloud/deploy.yaml"
)
DEFAULT_INGRESS_NAMESPACE = "ingress-nginx"
DEFAULT_CONTROLLER_SERVICE = "ingress-nginx-controller"
DEFAULT_CONTROLLER_SELECTOR = "app.kubernetes.io/component=controller"
DEFAULT_INGRESS_TIMEOUT = 300
DEFAULT_INTERNAL_SERVICE_MANIFEST = "nginx-internal-svc.yaml"
DEFAULT_APP_MANIFEST = "flask-app.yaml"
DEFAULT_APP_SELECTOR = "app=flask-hello"
DEFAULT_APP_TIMEOUT = 120

# Private Service Connect
DEFAULT_SERVICE_ATTACHMENT = "psc-service-b"
DEFAULT_NAT_SUBNET = "psc-subnet-b"
DEFAULT_CONNECTION_PREFERENCE = "ACCEPT_AUTOMATIC"
DEFAULT_PSC_NEG = "psc-neg-a"
DEFAULT_BACKEND_SERVICE = "external-lb-backend"

# Internal LB address polling (60 x 10s = 10 minutes)
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_POLL_ATTEMPTS = 60

# Wait for the cluster to release the internal LB before terraform destroy
DEFAULT_SETTLE_DELAY = 30.0

# Tools every run needs on PATH
REQUIRED_TOOLS = [
    "gcloud",
    "terraform",
    "kubectl",
]

# gcloud error fragments (matched lowercased against stderr)
NOT_FOUND_MARKERS = ("not found", "notfound")
ALREADY_EXISTS_MARKERS = ("already exists",)

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"
