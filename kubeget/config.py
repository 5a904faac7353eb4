import os

import kubeget.constants as const
from kubeget.exceptions import ConfigurationError


def in_cluster_settings():
    """
    Collect the connection settings of the cluster the process runs in, from the
    environment Kubernetes provides to every pod and the mounted service account.

    Return a dict with `name`, `cert_path`, `server` and `token`, suitable as keyword
    arguments for `ClusterClient`.

    Raise `ConfigurationError` if the API server address is unknown or the token
    can't be read.
    """
    host = os.environ.get("KUBERNETES_SERVICE_HOST")
    if not host:
        msg = "KUBERNETES_SERVICE_HOST is not set, not running inside a cluster?"
        raise ConfigurationError(message=msg)
    port = os.environ.get("KUBERNETES_SERVICE_PORT") or const.DEFAULT_SERVICE_PORT
    token_path = os.environ.get("KUBE_API_TOKEN_PATH", const.DEFAULT_TOKEN_PATH)
    ca_path = os.environ.get("KUBE_API_CA_PATH", const.DEFAULT_CA_PATH)

    if ":" in host:  # IPv6
        host = f"[{host}]"

    return {
        "name": os.environ.get("CLUSTER_NAME", const.DEFAULT_CLUSTER_NAME),
        "cert_path": ca_path,
        "server": f"https://{host}:{port}/",
        "token": __get_token(token_path),
    }


def __get_token(path: str):
    """
    Get the API token from the container's file system.
    """
    try:
        with open(path, "r", encoding="utf-8") as file:
            return file.read().strip()
    except OSError as err:
        msg = "Unable to read service account token from {token_path}."
        raise ConfigurationError(message=msg, token_path=path) from err
