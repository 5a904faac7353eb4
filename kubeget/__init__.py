from kubeget.client import ClusterClient
from kubeget.trust_store import TrustStore, build_trust_store

__all__ = ["ClusterClient", "TrustStore", "build_trust_store"]
