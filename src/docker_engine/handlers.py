"""
Progress handlers for pull, push, build, load and import operations
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Dict, Optional, Set

from .exceptions import (
    BuildError,
    DockerException,
    IllegalStateError,
    ImageLoadFailed,
    ImageNotFound,
    ImagePullFailed,
    ImagePushFailed,
)
from .messages import ProgressMessage

logger = logging.getLogger(__name__)

ESC = '\x1b'


class ProgressHandler(ABC):
    """Receives every progress message of an operation, in order"""

    @abstractmethod
    def progress(self, message: ProgressMessage):
        """
        Handle one message

        Raises:
            DockerException: If the message reports a failure
        """
        pass


class LoggingPullHandler(ProgressHandler):
    """Logs pull progress; default handler of ImageCollection.pull"""

    def __init__(self, image: str):
        self.image = image

    def progress(self, message: ProgressMessage):
        if message.error is not None:
            if '404' in message.error or 'not found' in message.error:
                raise ImageNotFound(self.image, str(message))
            raise ImagePullFailed(self.image, str(message))
        logger.info(f"pull {self.image}: {message}")


class LoggingPushHandler(ProgressHandler):
    """Logs push progress; default handler of ImageCollection.push"""

    def __init__(self, image: str):
        self.image = image

    def progress(self, message: ProgressMessage):
        if message.error is not None:
            if 'not found' in message.error or 'does not exist' in message.error:
                raise ImageNotFound(self.image, str(message))
            raise ImagePushFailed(self.image, str(message))
        logger.info(f"push {self.image}: {message}")


class LoggingLoadHandler(ProgressHandler):
    """Logs load and import progress"""

    def progress(self, message: ProgressMessage):
        if message.error is not None:
            raise ImageLoadFailed(str(message))
        logger.info(f"load: {message}")


class LoggingBuildHandler(ProgressHandler):
    """Logs build output"""

    def progress(self, message: ProgressMessage):
        if message.error is not None:
            raise BuildError(f"Build failed: {message.error}")
        logger.info(f"build: {message}")


class AnsiProgressHandler(ProgressHandler):
    """
    Prints progress the way the docker CLI does

    Every layer keeps its own line. When a layer reports again the cursor is
    moved up to that line, the line is rewritten and the cursor returns to
    the bottom.
    """

    def __init__(self, out=None):
        """
        Initialize handler

        Args:
            out: Text stream to write to (default: sys.stdout at call time)
        """
        self._out = out
        # layer id -> line index, in order of first appearance
        self.ids_to_lines: Dict[str, int] = {}

    @property
    def out(self):
        return self._out if self._out is not None else sys.stdout

    def progress(self, message: ProgressMessage):
        if message.error is not None:
            self.out.write(f"{message.error}\n")
            self.out.flush()
            raise DockerException(message.error)

        if message.progress_detail is not None:
            self._print_progress(message)
            return

        value = message.stream
        if value is not None:
            if value.endswith('\n'):
                value = value[:-1]
        else:
            value = message.status
        if value is None:
            value = str(message)

        self.out.write(f"{value}\n")
        self.out.flush()

    def _print_progress(self, message: ProgressMessage):
        layer_id = message.id
        line = self.ids_to_lines.get(layer_id)
        diff = 0
        if line is None:
            line = len(self.ids_to_lines)
            self.ids_to_lines[layer_id] = line
        else:
            diff = len(self.ids_to_lines) - line

        out = self.out
        if diff > 0:
            # up to the layer's line, then clear it
            out.write(f"{ESC}[{diff}A")
            out.write(f"{ESC}[2K\r")

        # e.g. "90b15849fc7e: Downloading [==>    ] 5.812 MB/117.4 MB"
        out.write(f"{layer_id}: {message.status} {message.progress or ''}\n")

        if diff > 0:
            out.write(f"{ESC}[{diff - 1}B")
        out.flush()


class CreateProgressHandler(ProgressHandler):
    """Passes messages on and captures the image ID reported by an import"""

    # sha256 hex digest, or the same prefixed with "sha256:"
    IMAGE_ID_LENGTHS = (64, 71)

    def __init__(self, delegate: ProgressHandler):
        self.delegate = delegate
        self._image_id: Optional[str] = None

    def progress(self, message: ProgressMessage):
        self.delegate.progress(message)
        status = message.status
        if status is not None and len(status) in self.IMAGE_ID_LENGTHS:
            self._image_id = status

    @property
    def image_id(self) -> str:
        """
        Raises:
            IllegalStateError: If no message carried an image ID
        """
        if self._image_id is None:
            raise IllegalStateError("Could not determine the created image ID")
        return self._image_id


class LoadProgressHandler(ProgressHandler):
    """Passes messages on and collects the names of loaded images"""

    PREFIX = 'Loaded image: '

    def __init__(self, delegate: ProgressHandler):
        self.delegate = delegate
        self.image_names: Set[str] = set()

    def progress(self, message: ProgressMessage):
        self.delegate.progress(message)
        value = message.stream
        if value and value.startswith(self.PREFIX) and value.endswith('\n'):
            name = value[len(self.PREFIX):-1]
            if name and '\n' not in name:
                self.image_names.add(name)


class BuildProgressHandler(ProgressHandler):
    """Passes messages on and remembers the last image ID announced by a build"""

    def __init__(self, delegate: ProgressHandler):
        self.delegate = delegate
        self.image_id: Optional[str] = None

    def progress(self, message: ProgressMessage):
        self.delegate.progress(message)
        image_id = message.build_image_id
        if image_id is not None:
            self.image_id = image_id
