"""Image sources.

An image source only resolves naming; pulling and platform selection
happen in the runtime create call.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..core.context import ExecutionContext
from ..models.errors import ImageResolutionError

# Simplified form of the distribution reference grammar:
# [registry[:port]/]path[:tag][@digest]
_COMPONENT = r"[a-z0-9]+(?:(?:[._]|__|[-]+)[a-z0-9]+)*"
_REGISTRY = r"(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)*(?::\d+)?/)"
_REFERENCE_PATTERN = re.compile(
    rf"^{_REGISTRY}?{_COMPONENT}(?:/{_COMPONENT})*"
    r"(?::[\w][\w.-]{0,127})?"
    r"(?:@[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,})?$"
)


@dataclass(frozen=True)
class Platform:
    """Target platform for image pull selection."""

    os: str
    architecture: str
    variant: Optional[str] = None

    @classmethod
    def parse(cls, spec: str) -> "Platform":
        """Parse ``"os/arch[/variant]"``, e.g. ``"linux/arm64/v8"``."""
        parts = [p.strip() for p in (spec or "").split("/")]
        if len(parts) not in (2, 3) or not all(parts):
            raise ValueError(f"Invalid platform {spec!r}, expected os/arch[/variant]")
        return cls(
            os=parts[0].lower(),
            architecture=parts[1].lower(),
            variant=parts[2].lower() if len(parts) == 3 else None,
        )

    def __str__(self) -> str:
        if self.variant:
            return f"{self.os}/{self.architecture}/{self.variant}"
        return f"{self.os}/{self.architecture}"


class FromImageSource:
    """Image source wrapping a literal image reference."""

    def __init__(self, image: str, platform: Optional[Platform] = None):
        self.image = image
        self.platform = platform

    async def prepare(self, ctx: ExecutionContext) -> str:
        """Return the stored reference unchanged.

        Raises:
            ImageResolutionError: If the reference is malformed
        """
        if not self.image or not self.image.strip():
            raise ImageResolutionError(self.image or "", "empty image reference")
        if not _REFERENCE_PATTERN.match(self.image):
            raise ImageResolutionError(self.image)
        return self.image

    def __repr__(self) -> str:
        if self.platform:
            return f"FromImageSource({self.image!r}, platform={str(self.platform)!r})"
        return f"FromImageSource({self.image!r})"


FromImageSourceOption = Callable[[FromImageSource], None]


def with_image_platform(platform: str) -> FromImageSourceOption:
    """Narrow pull selection to ``platform`` (``"linux/amd64"``)."""
    parsed = Platform.parse(platform)

    def option(source: FromImageSource) -> None:
        source.platform = parsed

    return option


def from_image(image: str, *options: FromImageSourceOption) -> FromImageSource:
    """Build an image source for a literal reference such as ``"nginx:1.27"``."""
    source = FromImageSource(image)
    for option in options:
        option(source)
    return source
