"""
Docker API Exceptions
"""


class DockerException(Exception):
    """Base Docker exception"""
    pass


class APIError(DockerException):
    """Docker API error"""

    def __init__(self, message, response=None, status_code=None, method=None, uri=None):
        super().__init__(message)
        self.response = response
        self.status_code = status_code
        self.method = method
        self.uri = uri


class NotFound(APIError):
    """Resource not found (HTTP 404)"""
    pass


class Conflict(APIError):
    """Request conflicts with the daemon state (HTTP 409)"""
    pass


class ImageNotFound(NotFound):
    """Image not found"""

    def __init__(self, image, message=None, **kwargs):
        super().__init__(message or f"Image not found: {image}", **kwargs)
        self.image = image


class ContainerNotFound(NotFound):
    """Container not found"""
    pass


class NetworkNotFound(NotFound):
    """Network not found"""
    pass


class DockerTimeoutError(DockerException):
    """Socket read timed out while talking to the daemon"""

    def __init__(self, method=None, uri=None, message=None):
        super().__init__(message or f"Timeout: {method} {uri}")
        self.method = method
        self.uri = uri


class DockerInterruptedError(DockerException):
    """Stream consumption was cancelled by the caller"""

    def __init__(self, method=None, uri=None):
        super().__init__(f"Interrupted: {method} {uri}")
        self.method = method
        self.uri = uri


class DockerStreamError(DockerException):
    """Malformed frame or JSON value in a response stream"""
    pass


class ImagePullFailed(DockerException):
    """Daemon reported an error while pulling"""

    def __init__(self, image, message):
        super().__init__(f"Image pull failed: {image}: {message}")
        self.image = image


class ImagePushFailed(DockerException):
    """Daemon reported an error while pushing"""

    def __init__(self, image, message):
        super().__init__(f"Image push failed: {image}: {message}")
        self.image = image


class ImageLoadFailed(DockerException):
    """Daemon reported an error while loading or importing an image"""
    pass


class BuildError(DockerException):
    """Image build error"""
    pass


class IllegalStateError(DockerException):
    """Result queried before the stream produced it"""
    pass
