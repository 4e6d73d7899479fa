"""
Docker Engine API client - pure Python, no external dependencies
Works with the Docker daemon via Unix socket or TCP
"""

from .client import DockerClient
from .config import ClientConfig, DockerHost
from .exceptions import (
    APIError,
    BuildError,
    Conflict,
    ContainerNotFound,
    DockerException,
    DockerInterruptedError,
    DockerStreamError,
    DockerTimeoutError,
    IllegalStateError,
    ImageLoadFailed,
    ImageNotFound,
    ImagePullFailed,
    ImagePushFailed,
    NetworkNotFound,
    NotFound,
)
from .handlers import (
    AnsiProgressHandler,
    BuildProgressHandler,
    CreateProgressHandler,
    LoadProgressHandler,
    LoggingBuildHandler,
    LoggingLoadHandler,
    LoggingPullHandler,
    LoggingPushHandler,
    ProgressHandler,
)
from .log_reader import LogReader
from .log_stream import LogStream
from .messages import LogMessage, ProgressDetail, ProgressMessage, Stream
from .progress_stream import JSONStream, ProgressStream
from .serialization import JSONCodec

__all__ = [
    'DockerClient',
    'ClientConfig',
    'DockerHost',
    'JSONCodec',
    'LogReader',
    'LogStream',
    'LogMessage',
    'Stream',
    'JSONStream',
    'ProgressStream',
    'ProgressMessage',
    'ProgressDetail',
    'ProgressHandler',
    'AnsiProgressHandler',
    'LoggingPullHandler',
    'LoggingPushHandler',
    'LoggingLoadHandler',
    'LoggingBuildHandler',
    'CreateProgressHandler',
    'LoadProgressHandler',
    'BuildProgressHandler',
    'DockerException',
    'APIError',
    'NotFound',
    'Conflict',
    'ImageNotFound',
    'ContainerNotFound',
    'NetworkNotFound',
    'DockerTimeoutError',
    'DockerInterruptedError',
    'DockerStreamError',
    'ImagePullFailed',
    'ImagePushFailed',
    'ImageLoadFailed',
    'BuildError',
    'IllegalStateError',
]

__version__ = '1.0.0'
