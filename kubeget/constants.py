SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_TOKEN_PATH = f"{SERVICE_ACCOUNT_DIR}/token"
DEFAULT_CA_PATH = f"{SERVICE_ACCOUNT_DIR}/ca.crt"
DEFAULT_CLUSTER_NAME = "in-cluster"
DEFAULT_SERVICE_PORT = "443"
LOG_LEVEL = "LOG_LEVEL"
SUPPORTED_SCHEMES = ("http", "https")
PEM_CERT_REGEX = r"-----BEGIN CERTIFICATE-----\s*.+?\s*-----END CERTIFICATE-----"
