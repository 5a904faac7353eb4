import requests
from requests.adapters import HTTPAdapter

from kubeget.trust_store import TrustStore


class TrustStoreAdapter(HTTPAdapter):
    """
    Transport adapter that verifies servers against the SSL context of a
    `TrustStore` instead of the CA bundle requests would pick by default.
    """

    def __init__(self, trust_store: TrustStore, **kwargs):
        self.trust_store = trust_store
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self.trust_store.context
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args, **kwargs):
        kwargs["ssl_context"] = self.trust_store.context
        return super().proxy_manager_for(*args, **kwargs)

    def cert_verify(self, conn, url, verify, cert):
        super().cert_verify(conn, url, verify, cert)
        # the context already holds all roots, urllib3 would load these into it
        conn.ca_certs = None
        conn.ca_cert_dir = None


def make_session(trust_store: TrustStore):
    """
    Create a `requests.Session` that trusts the certificates of `trust_store` for
    all HTTPS connections.
    """
    session = requests.Session()
    session.verify = True
    session.headers.update({"Accept": "application/json"})
    session.mount("https://", TrustStoreAdapter(trust_store))
    return session
