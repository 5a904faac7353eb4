import logging
import re
import ssl
import warnings
from typing import NamedTuple

import kubeget.constants as const
from kubeget.exceptions import CertificateLoadError, CertificateParseWarning


class TrustStore(NamedTuple):
    """
    A finished TLS client configuration whose root store holds the system defaults
    plus the certificates of a cluster CA bundle. `added` and `rejected` count the
    PEM blocks of the bundle that could or could not be loaded.
    """

    context: ssl.SSLContext
    cert_path: str
    added: int
    rejected: int


def build_trust_store(cert_path: str) -> TrustStore:
    """
    Read the PEM encoded CA bundle at `cert_path` and return a `TrustStore` trusting
    every certificate in it.

    Raise `CertificateLoadError` if the file can't be read. Unusable certificate
    blocks don't fail the build, but result in a single `CertificateParseWarning`.
    """
    try:
        with open(cert_path, "r", encoding="ascii", errors="replace") as file:
            bundle = file.read()
    except OSError as err:
        msg = "Unable to read CA certificate file {cert_path}."
        raise CertificateLoadError(message=msg, cert_path=cert_path) from err

    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    added, rejected = 0, 0
    for block in re.findall(const.PEM_CERT_REGEX, bundle, re.DOTALL):
        if __add_certificate(context, block):
            added += 1
        else:
            rejected += 1

    if rejected:
        warnings.warn(
            f"Couldn't add {rejected} certificate(s) from {cert_path}.",
            CertificateParseWarning,
            stacklevel=2,
        )
    logging.debug("Loaded %s certificate(s) from %s.", added, cert_path)

    return TrustStore(context, cert_path, added, rejected)


def __add_certificate(context: ssl.SSLContext, block: str):
    try:
        context.load_verify_locations(cadata=ssl.PEM_cert_to_DER_cert(block))
    except (ssl.SSLError, ValueError):
        return False
    return True
