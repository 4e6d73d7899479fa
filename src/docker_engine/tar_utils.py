"""
TAR Archive utilities for build contexts and container archives
"""

import fnmatch
import io
import os
import tarfile
from typing import List, Optional


def read_dockerignore(context_path: str) -> List[str]:
    """
    Read .dockerignore patterns

    Args:
        context_path: Build context directory

    Returns:
        Patterns in file order, comments and blank lines removed
    """
    ignore_file = os.path.join(context_path, '.dockerignore')
    if not os.path.exists(ignore_file):
        return []

    patterns = []
    with open(ignore_file, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            negate = line.startswith('!')
            pattern = os.path.normpath(line.lstrip('!').strip()).lstrip('/')
            patterns.append(('!' if negate else '') + pattern)
    return patterns


def is_ignored(relpath: str, patterns: List[str]) -> bool:
    """
    Match a context-relative path against .dockerignore patterns

    The last matching pattern wins; "!" patterns re-include. A path is also
    ignored when one of its parent directories matches.
    """
    relpath = relpath.replace(os.sep, '/')
    parts = relpath.split('/')
    candidates = ['/'.join(parts[:i]) for i in range(1, len(parts) + 1)]

    ignored = False
    for pattern in patterns:
        negate = pattern.startswith('!')
        if negate:
            pattern = pattern[1:]
        pattern = pattern.replace(os.sep, '/')
        if any(fnmatch.fnmatchcase(candidate, pattern) for candidate in candidates):
            ignored = not negate
    return ignored


def create_build_context(context_path: str, dockerfile: str = 'Dockerfile',
                         gzip: bool = False) -> bytes:
    """
    Create tar archive of a build context directory

    Args:
        context_path: Directory to archive
        dockerfile: Dockerfile path relative to the context; always included
        gzip: Compress the archive

    Returns:
        Tar archive as bytes

    Raises:
        FileNotFoundError: If the context directory does not exist
    """
    if not os.path.isdir(context_path):
        raise FileNotFoundError(f"Build context not found: {context_path}")

    patterns = read_dockerignore(context_path)
    always_included = {os.path.normpath(dockerfile).replace(os.sep, '/'), '.dockerignore'}

    tar_stream = io.BytesIO()
    with tarfile.open(fileobj=tar_stream, mode='w:gz' if gzip else 'w') as tar:
        for root, dirs, files in os.walk(context_path):
            dirs.sort()
            for file in sorted(files):
                file_path = os.path.join(root, file)
                arcname = os.path.relpath(file_path, context_path).replace(os.sep, '/')
                if arcname not in always_included and is_ignored(arcname, patterns):
                    continue
                tar.add(file_path, arcname=arcname, recursive=False)

    return tar_stream.getvalue()


def create_tar_from_file(file_path: str, arcname: Optional[str] = None) -> bytes:
    """
    Create tar archive from a single file

    Args:
        file_path: Path to file to archive
        arcname: Name of file in archive (default: basename of file_path)

    Returns:
        Tar archive as bytes
    """
    if arcname is None:
        arcname = os.path.basename(file_path)

    tar_stream = io.BytesIO()
    with tarfile.open(fileobj=tar_stream, mode='w') as tar:
        tar.add(file_path, arcname=arcname)
    return tar_stream.getvalue()

