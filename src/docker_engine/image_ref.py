"""
Image reference parsing
"""

from typing import Optional


class ImageRef:
    """
    Splits "repository[:tag]" into repository and tag

    Digest references (repo@sha256:...) and registry ports (host:5000/repo)
    keep the whole string as repository.
    """

    def __init__(self, image: str):
        last_at = image.rfind('@')
        last_colon = image.rfind(':')

        self.image = image
        self.tag: Optional[str] = None
        if last_at >= 0 or last_colon < 0:
            return

        tag = image[last_colon + 1:]
        if '/' not in tag:
            self.image = image[:last_colon]
            self.tag = tag

    def __str__(self):
        return self.image if self.tag is None else f"{self.image}:{self.tag}"

    def __repr__(self):
        return f"<ImageRef: {self}>"
