class BaseKubeException(Exception):
    """
    Base exception that can take an error message and context information.
    """

    message: str
    context: dict
    default_message = "An error occurred."

    def __init__(self, message: str = default_message, **kwargs):
        self.message = message.format(**kwargs)
        self.context = dict(**kwargs)
        super().__init__()

    def __str__(self):
        return str(dict(message=self.message, context=self.context))

    def update_context(self, **kwargs):
        self.context.update(dict(**kwargs))


class InvalidUrlError(BaseKubeException):
    pass


class UrlParseError(InvalidUrlError):
    pass


class UrlJoinError(InvalidUrlError):
    pass


class CertificateLoadError(BaseKubeException):
    pass


class ConfigurationError(BaseKubeException):
    pass


class TransportError(BaseKubeException):
    pass


class RequestTimeoutError(TransportError):
    pass


class ApiError(BaseKubeException):
    status_code: int

    def __init__(
        self,
        message: str = BaseKubeException.default_message,
        status_code: int = 0,
        **kwargs,
    ):
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **kwargs)


class DeserializationError(BaseKubeException):
    pass


class CertificateParseWarning(UserWarning):
    pass
