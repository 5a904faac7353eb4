import datetime
import ipaddress
import json
import os
import re
from contextlib import contextmanager

import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from kubeget.client import ClusterClient

"""
This file is used for sharing fixtures across all other test files.
https://docs.pytest.org/en/stable/fixture.html#scope-sharing-fixtures-across-classes-modules-packages-or-session
"""

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")
SERVER = "https://kube.example.com:6443/"
TOKEN = "s3cr3t-token"

CORRUPT_PEM = "-----BEGIN CERTIFICATE-----\nZm9vYmFy\n-----END CERTIFICATE-----\n"


@contextmanager
def no_exc():
    yield


def get_json(path):
    with open(path, "r") as file:
        return json.load(file)


def get_k8s_res(name):
    return get_json(f"{DATA_DIR}/sample_kube_resources/{name}.json")


def make_ca(common_name: str = "kubeget test CA"):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=False,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
        )
        .sign(key, hashes.SHA256())
    )
    return cert, key


def make_ca_pem(common_name: str = "kubeget test CA"):
    cert, _ = make_ca(common_name)
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def make_leaf(ca_cert, ca_key, host: str = "127.0.0.1"):
    """
    Issue a server certificate for the IP address `host`, signed by the given CA.
    Returns the certificate and its private key, both PEM encoded.
    """
    key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, host)]))
        .issuer_name(ca_cert.subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(
            x509.SubjectAlternativeName([x509.IPAddress(ipaddress.ip_address(host))]),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
        )
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
            critical=False,
        )
        .sign(ca_key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return cert.public_bytes(serialization.Encoding.PEM), key_pem


@pytest.fixture
def ca_pem():
    return make_ca_pem()


@pytest.fixture
def ca_file(tmp_path, ca_pem):
    path = tmp_path / "ca.crt"
    path.write_text(ca_pem)
    return str(path)


@pytest.fixture
def client(ca_file):
    return ClusterClient("sample", ca_file, SERVER, TOKEN)


@pytest.fixture
def no_proxy(monkeypatch):
    for var in ("HTTPS_PROXY", "HTTP_PROXY", "ALL_PROXY"):
        monkeypatch.delenv(var, raising=False)
        monkeypatch.delenv(var.lower(), raising=False)
    monkeypatch.setenv("NO_PROXY", "127.0.0.1,localhost")


class MockResponse:
    status_code: int
    reason: str
    closed: bool = False

    def __init__(self, content, status_code: int = 200, reason: str = "OK"):
        self.text = content if isinstance(content, str) else json.dumps(content)
        self.status_code = status_code
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)

    def iter_content(self, chunk_size=1, decode_unicode=False):
        yield self.text.encode()

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def k8s_status(code: int, reason: str, message: str):
    return MockResponse(
        {
            "kind": "Status",
            "apiVersion": "v1",
            "status": "Failure",
            "message": message,
            "reason": reason,
            "code": code,
        },
        status_code=code,
        reason=reason,
    )


@pytest.fixture
def m_request(monkeypatch):
    """
    Replace `requests.Session.get`. Every call is recorded as `(session, url, kwargs)`
    in the returned list.
    """
    calls = []

    def mock_session_get(self, url, **kwargs):
        calls.append((self, url, kwargs))
        return mock_get_request(url, **kwargs)

    monkeypatch.setattr(requests.Session, "get", mock_session_get)
    return calls


def mock_get_request(url, **kwargs):
    if kwargs.get("headers", {}).get("Authorization") != f"Bearer {TOKEN}":
        return k8s_status(401, "Unauthorized", "Unauthorized")

    kube_regex = [
        (
            r"https:\/\/[^\/]+\/api\/v1\/(?:namespaces\/[^\/]+\/)?"
            r"([^\/?]+)(?:\/([^\/?]+))?"
        ),
        mock_request_kube,
    ]
    healthz_regex = [r"https:\/\/[^\/]+\/healthz", mock_request_healthz]

    for reg in (kube_regex, healthz_regex):
        match = re.search(reg[0], url)

        if match:
            return reg[1](match, **kwargs)
    return k8s_status(
        404, "NotFound", "the server could not find the requested resource"
    )


def mock_request_kube(match: re.Match, **kwargs):
    kind, name = match.group(1), match.group(2)

    if name == "not-json":
        return MockResponse("<html>gateway says hi</html>")
    try:
        return MockResponse(get_k8s_res(name or kind))
    except FileNotFoundError:
        return k8s_status(404, "NotFound", f'{kind} "{name}" not found')


def mock_request_healthz(match: re.Match, **kwargs):
    return MockResponse("ok")
