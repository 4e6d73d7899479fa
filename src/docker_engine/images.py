"""
Docker Images API
"""

import logging
import os
import threading
from typing import Any, Dict, List, Optional, Set

from .exceptions import BuildError, ImageNotFound, NotFound
from .handlers import (
    BuildProgressHandler,
    CreateProgressHandler,
    LoadProgressHandler,
    LoggingBuildHandler,
    LoggingLoadHandler,
    LoggingPullHandler,
    LoggingPushHandler,
    ProgressHandler,
)
from .image_ref import ImageRef
from .serialization import parse_created
from .tar_utils import create_build_context

logger = logging.getLogger(__name__)

# The daemon rejects pushes without this header, even for registries without auth
EMPTY_REGISTRY_AUTH = 'e30='


class Image:
    """Docker Image object"""

    def __init__(self, attrs: Dict[str, Any], client):
        self.attrs = attrs
        self.client = client
        self.id = attrs.get('Id', '')
        self.short_id = self.id[:19] if self.id.startswith('sha256:') else self.id[:12]
        self.tags = attrs.get('RepoTags') or []
        self.created = parse_created(attrs.get('Created'))

    def __repr__(self):
        return f"<Image: {self.tags[0] if self.tags else self.short_id}>"

    def tag(self, name: str):
        """Tag this image"""
        return self.client.tag(self.id, name)

    def remove(self, force: bool = False, noprune: bool = False):
        """Remove this image"""
        return self.client.remove(self.id, force=force, noprune=noprune)


class ImageCollection:
    """Docker Images collection"""

    def __init__(self, client):
        self.client = client

    def list(self, name: Optional[str] = None, all: bool = False,
             filters: Optional[Dict[str, Any]] = None) -> List[Image]:
        """
        List images

        Args:
            name: Filter by image name
            all: Show all images (including intermediates)
            filters: Filters to apply

        Returns:
            List of Image objects
        """
        params = {'all': all}
        if filters:
            params['filters'] = filters

        images_data = self.client.http.get('/images/json', params=params) or []
        images = [Image(img_data, self) for img_data in images_data]

        # Filter by name if specified
        if name:
            images = [img for img in images if any(name in tag for tag in img.tags)]

        return images

    def get(self, name: str) -> Image:
        """
        Get image by name or ID

        Raises:
            ImageNotFound: If image not found
        """
        return Image(self.inspect(name), self)

    def inspect(self, name: str) -> Dict[str, Any]:
        """Raw inspect data of an image"""
        try:
            return self.client.http.get(f'/images/{name}/json')
        except NotFound as e:
            raise ImageNotFound(name) from e

    def _tail(self, response, handler: ProgressHandler, cancel: Optional[threading.Event]):
        stream = self.client.progress_stream(response)
        stream.tail(handler, cancel=cancel)

    def pull(self, image: str, tag: Optional[str] = None,
             handler: Optional[ProgressHandler] = None, platform: Optional[str] = None,
             cancel: Optional[threading.Event] = None) -> Image:
        """
        Pull image from registry

        Args:
            image: Image reference, e.g. "busybox", "busybox:1.36", "repo@sha256:..."
            tag: Tag to pull; overrides a tag inside image (default: latest)
            handler: Progress handler (default: logs progress)
            platform: Platform (e.g., linux/amd64)
            cancel: Event that aborts the pull when set

        Returns:
            Image object

        Raises:
            ImageNotFound: If the registry has no such image
            ImagePullFailed: If the daemon reported any other error
            DockerInterruptedError: If cancelled
        """
        ref = ImageRef(image)
        if tag is None:
            tag = ref.tag or (None if '@' in image else 'latest')
        full_name = ref.image if tag is None else f"{ref.image}:{tag}"

        params = {'fromImage': ref.image, 'tag': tag, 'platform': platform}
        response = self.client.http.post('/images/create', params=params, stream=True)
        self._tail(response, handler or LoggingPullHandler(full_name), cancel)

        return self.get(full_name)

    def push(self, image: str, handler: Optional[ProgressHandler] = None,
             cancel: Optional[threading.Event] = None):
        """
        Push image to its registry

        Args:
            image: Image reference with optional tag
            handler: Progress handler (default: logs progress)
            cancel: Event that aborts the push when set

        Raises:
            ImagePushFailed: If the daemon reported an error
        """
        ref = ImageRef(image)
        headers = {'X-Registry-Auth': EMPTY_REGISTRY_AUTH}
        response = self.client.http.post(
            f'/images/{ref.image}/push', params={'tag': ref.tag}, headers=headers, stream=True
        )
        self._tail(response, handler or LoggingPushHandler(str(ref)), cancel)

    def tag(self, image: str, name: str):
        """
        Tag image

        Args:
            image: Source image name or ID
            name: New reference, "repository[:tag]"
        """
        ref = ImageRef(name)
        try:
            self.client.http.post(f'/images/{image}/tag', params={'repo': ref.image, 'tag': ref.tag})
        except NotFound as e:
            raise ImageNotFound(image) from e

    def build(self, path: str, name: Optional[str] = None,
              handler: Optional[ProgressHandler] = None,
              dockerfile: str = 'Dockerfile', buildargs: Optional[Dict[str, str]] = None,
              platform: Optional[str] = None, rm: bool = True, nocache: bool = False,
              pull: bool = False, cancel: Optional[threading.Event] = None) -> str:
        """
        Build image from Dockerfile

        Args:
            path: Build context path
            name: Tag for the image
            handler: Progress handler (default: logs build output)
            dockerfile: Dockerfile path inside the context
            buildargs: Build arguments
            platform: Target platform
            rm: Remove intermediate containers
            nocache: Do not use the build cache
            pull: Always attempt to pull newer base images
            cancel: Event that aborts the build when set

        Returns:
            ID of the built image

        Raises:
            BuildError: If the build failed or reported no image ID
        """
        if not os.path.isdir(path):
            raise BuildError(f"Build context not found: {path}")

        context = create_build_context(path, dockerfile=dockerfile)
        params = {
            'dockerfile': dockerfile,
            't': name,
            'buildargs': buildargs,
            'platform': platform,
            'rm': rm,
            'nocache': nocache,
            'pull': pull,
        }
        headers = {'Content-Type': 'application/x-tar'}

        response = self.client.http.post('/build', params=params, headers=headers,
                                         data=context, stream=True)
        extractor = BuildProgressHandler(handler or LoggingBuildHandler())
        self._tail(response, extractor, cancel)

        if extractor.image_id is None:
            raise BuildError("Build completed but no image ID received")
        logger.info(f"Built image {extractor.image_id}" + (f" as {name}" if name else ""))
        return extractor.image_id

    def load(self, data: bytes, handler: Optional[ProgressHandler] = None,
             cancel: Optional[threading.Event] = None) -> Set[str]:
        """
        Load images from a tarball produced by "docker save"

        Args:
            data: Tar archive as bytes
            handler: Progress handler (default: logs progress)

        Returns:
            Names of the loaded images
        """
        headers = {'Content-Type': 'application/x-tar'}
        response = self.client.http.post('/images/load', params={'quiet': False},
                                         headers=headers, data=data, stream=True)
        extractor = LoadProgressHandler(handler or LoggingLoadHandler())
        self._tail(response, extractor, cancel)
        return extractor.image_names

    def create(self, source, repository: Optional[str] = None, tag: Optional[str] = None,
               handler: Optional[ProgressHandler] = None,
               cancel: Optional[threading.Event] = None) -> str:
        """
        Import an image from a root filesystem tarball

        Args:
            source: Tarball bytes, or a URL the daemon downloads from
            repository: Name for the image, "repository[:tag]"
            tag: Tag; overrides a tag inside repository
            handler: Progress handler (default: logs progress)

        Returns:
            ID of the created image

        Raises:
            IllegalStateError: If the daemon never reported the image ID
        """
        params: Dict[str, Any] = {}
        if repository:
            ref = ImageRef(repository)
            params.update({'repo': ref.image, 'tag': tag or ref.tag})

        data = None
        headers = None
        if isinstance(source, (bytes, bytearray)):
            params['fromSrc'] = '-'
            data = source
            headers = {'Content-Type': 'application/x-tar'}
        else:
            params['fromSrc'] = source

        response = self.client.http.post('/images/create', params=params, headers=headers,
                                         data=data, stream=True)
        extractor = CreateProgressHandler(handler or LoggingLoadHandler())
        self._tail(response, extractor, cancel)
        return extractor.image_id

    def remove(self, image: str, force: bool = False, noprune: bool = False):
        """
        Remove image

        Args:
            image: Image name or ID
            force: Force removal
            noprune: Don't delete untagged parents
        """
        params = {'force': force, 'noprune': noprune}
        try:
            return self.client.http.delete(f'/images/{image}', params=params)
        except NotFound as e:
            raise ImageNotFound(image) from e
