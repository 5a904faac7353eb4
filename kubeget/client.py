import logging
from datetime import timedelta
from typing import Optional, Union
from urllib.parse import urljoin, urlsplit

import requests
from urllib3.exceptions import ReadTimeoutError

import kubeget.constants as const
from kubeget.config import in_cluster_settings
from kubeget.exceptions import (
    ApiError,
    DeserializationError,
    RequestTimeoutError,
    TransportError,
    UrlJoinError,
    UrlParseError,
)
from kubeget.transport import make_session
from kubeget.trust_store import build_trust_store

DEFAULT_PORTS = {"http": 80, "https": 443}


class ClusterClient:
    """
    Authenticated read access to the API server of a single Kubernetes cluster.

    The client trusts the CA bundle at `cert_path`, sends `token` as bearer token
    with every request and resolves all request paths against `server`. Only GET
    requests are supported and nothing is retried.
    """

    name: str
    endpoint: str
    cert_path: str

    def __init__(self, name: str, cert_path: str, server: str, token: str):
        """
        Raise `UrlParseError` if `server` isn't an absolute http(s) URL and
        `CertificateLoadError` if the CA bundle at `cert_path` can't be read.
        """
        self.name = name
        self.endpoint = server
        self.cert_path = cert_path
        self.__origin = self.__parse_origin(server)
        self.__token = token
        self.__session = make_session(build_trust_store(cert_path))

    @classmethod
    def in_cluster(cls):
        """
        Create a client for the cluster the process is running in, using the
        mounted service account.
        """
        return cls(**in_cluster_settings())

    def __repr__(self):
        return f"ClusterClient(name={self.name!r}, endpoint={self.endpoint!r})"

    def get(self, path: str, shape):
        """
        Request `path` and deserialize the JSON response into `shape`, which is any
        class providing a `from_json` classmethod, e.g. `kubeget.models.PodList`.

        Raise `DeserializationError` if the response isn't valid JSON or doesn't
        match the shape.
        """
        return self.__decode(path, shape)

    def get_value(self, path: str):
        """
        Request `path` and return the JSON response as plain Python objects.
        """
        return self.__decode(path)

    def get_text(self, path: str) -> str:
        with self._send(path) as response:
            return response.text

    def get_read(
        self, path: str, timeout: Optional[Union[float, timedelta]] = None
    ) -> requests.Response:
        """
        Request `path` and return the still open, streamed response. The caller is
        responsible for reading and closing it.

        Without a `timeout` the shared session of the client is used. With one, a
        separate session is built from a freshly loaded CA bundle and the timeout
        (in seconds) bounds connecting as well as every read, raising
        `RequestTimeoutError` when exceeded. This also holds for reads of the
        body through `iter_content`, `iter_lines`, `content`, `text` or `json`,
        but not for reads from `response.raw`.

        Non-2xx answers raise `ApiError` and the response is closed.
        """
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        return self._send(path, timeout=timeout, stream=True)

    def _send(
        self, path: str, timeout: Optional[float] = None, stream: bool = False
    ) -> requests.Response:
        url = self.__resolve(path)
        if timeout is None:
            session = self.__session
        else:
            session = make_session(build_trust_store(self.cert_path))

        logging.debug("GET %s on cluster %s.", url, self.name)
        try:
            response = session.get(
                url,
                headers={"Authorization": f"Bearer {self.__token}"},
                timeout=timeout,
                stream=stream,
            )
        except requests.exceptions.Timeout as err:
            msg = "Request to {url} timed out after {timeout}s."
            raise RequestTimeoutError(message=msg, url=url, timeout=timeout) from err
        except requests.exceptions.RequestException as err:
            msg = "Unable to reach cluster {cluster} at {url}: {err}"
            raise TransportError(
                message=msg, cluster=self.name, url=url, err=str(err)
            ) from err

        if not response.ok:
            with response:
                raise self.__api_error(response, url)
        if timeout is not None:
            self.__bound_reads(response, url, timeout)
        return response

    @staticmethod
    def __bound_reads(response: requests.Response, url: str, timeout: float):
        # requests reports a stalled body as ConnectionError(ReadTimeoutError)
        iter_content = response.iter_content

        def bounded_iter_content(*args, **kwargs):
            try:
                yield from iter_content(*args, **kwargs)
            except requests.exceptions.ConnectionError as err:
                if not (err.args and isinstance(err.args[0], ReadTimeoutError)):
                    raise
                msg = "Reading the response from {url} timed out after {timeout}s."
                raise RequestTimeoutError(
                    message=msg, url=url, timeout=timeout
                ) from err

        response.iter_content = bounded_iter_content

    def __decode(self, path: str, shape=None):
        with self._send(path) as response:
            try:
                data = response.json()
            except ValueError as err:
                msg = "Response for {path} is not valid JSON."
                raise DeserializationError(message=msg, path=path) from err

        if shape is None:
            return data
        try:
            return shape.from_json(data)
        except DeserializationError as err:
            err.update_context(path=path)
            raise

    def __resolve(self, path: str):
        try:
            url = urljoin(self.endpoint, path)
            origin = self.__origin_of(urlsplit(url))
        except ValueError as err:
            msg = "Unable to join {path} onto {endpoint}."
            raise UrlJoinError(message=msg, path=path, endpoint=self.endpoint) from err

        if origin != self.__origin:
            msg = "{path} points outside of the API server {endpoint}."
            raise UrlJoinError(message=msg, path=path, endpoint=self.endpoint)
        return url

    @classmethod
    def __parse_origin(cls, server: str):
        try:
            parts = urlsplit(server)
            origin = cls.__origin_of(parts)
        except (ValueError, TypeError, AttributeError) as err:
            msg = "{server} is not a valid server URL."
            raise UrlParseError(message=msg, server=server) from err

        if parts.scheme not in const.SUPPORTED_SCHEMES or not parts.hostname:
            msg = "{server} is not an absolute http(s) URL."
            raise UrlParseError(message=msg, server=server)
        return origin

    @staticmethod
    def __origin_of(parts):
        # accessing `port` raises ValueError for invalid ports
        port = parts.port or DEFAULT_PORTS.get(parts.scheme)
        return parts.scheme, parts.hostname, port

    @staticmethod
    def __api_error(response: requests.Response, url: str):
        try:
            detail = response.json().get("message", "")
        except (ValueError, AttributeError):
            detail = response.text
        msg = "{url} returned {status_code} {reason}: {detail}"
        return ApiError(
            message=msg,
            status_code=response.status_code,
            url=url,
            reason=response.reason,
            detail=detail,
        )
