"""Textures: images loaded from files or memory, shared through a registry."""

from __future__ import annotations

import itertools
import logging
from os import PathLike
from typing import Union

from PIL import Image

from kaaengine.resources import EngineError, Resource, ResourceReference, ResourcesRegistry

logger = logging.getLogger(__name__)

SAMPLER_NONE = 0

_textures_registry: ResourcesRegistry[str, Texture] = ResourcesRegistry()
_handle_ids = itertools.count(1)
_textures_active = False


def initialize_textures() -> None:
    """Initialize every live registered texture; later textures start initialized."""
    global _textures_active
    _textures_active = True
    _textures_registry.initialize()


def uninitialize_textures() -> None:
    """Release every live registered texture."""
    global _textures_active
    _textures_active = False
    _textures_registry.uninitialize()


def _load_image(path: Union[str, PathLike]) -> Image.Image:
    logger.info("Loading image from file: %s", path)
    with Image.open(path) as image:
        image.load()
        loaded = image.copy()
    logger.info(
        "Image details - width: %d, height: %d, mode: %s",
        loaded.width,
        loaded.height,
        loaded.mode,
    )
    return loaded


class Texture(Resource):
    """An image that the renderer can sample from."""

    def __init__(
        self, image: Image.Image | None, path: str = "", flags: int = SAMPLER_NONE
    ) -> None:
        self.path = path
        self.flags = flags
        self.image = image
        self.handle: int | None = None
        self.is_initialized = False
        if _textures_active:
            self._initialize()

    @classmethod
    def load(
        cls, path: Union[str, PathLike], flags: int = SAMPLER_NONE
    ) -> ResourceReference[Texture]:
        """Load a texture from a file, reusing a live one loaded from the same path."""
        key = str(path)
        texture = _textures_registry.get_resource(key)
        if texture is not None:
            return ResourceReference(texture)
        texture = cls(_load_image(key), key, flags)
        _textures_registry.register_resource(key, texture)
        return ResourceReference(texture)

    @classmethod
    def from_image(cls, image: Image.Image) -> ResourceReference[Texture]:
        """Wrap an image already in memory; such textures are not shared."""
        return ResourceReference(cls(image))

    def get_dimensions(self) -> tuple[int, int]:
        if self.image is None:
            raise EngineError("Invalid image container.")
        return self.image.width, self.image.height

    def _initialize(self) -> None:
        self.handle = next(_handle_ids)
        self.is_initialized = True

    def _uninitialize(self) -> None:
        self.handle = None
        self.is_initialized = False

    def __repr__(self) -> str:
        return f"Texture(path={self.path!r}, flags={self.flags})"