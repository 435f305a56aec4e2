"""Sprites: rectangular regions of textures and sprite sheet splitting."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from os import PathLike
from typing import Union

from kaaengine.resources import EngineError, ResourceReference
from kaaengine.textures import SAMPLER_NONE, Texture

logger = logging.getLogger(__name__)

Vec2 = tuple[float, float]


@dataclass(frozen=True)
class Sprite:
    """A region of a texture, given by origin and dimensions in pixels."""

    texture: ResourceReference = field(default_factory=ResourceReference)
    origin: Vec2 = (0.0, 0.0)
    dimensions: Vec2 | None = None

    def __post_init__(self) -> None:
        texture = self.texture
        if isinstance(texture, Texture):
            texture = ResourceReference(texture)
            object.__setattr__(self, "texture", texture)
        object.__setattr__(self, "origin", tuple(float(v) for v in self.origin))
        if self.dimensions is None:
            if texture:
                width, height = texture.res_ptr.get_dimensions()
                dimensions = (float(width), float(height))
            else:
                dimensions = (0.0, 0.0)
        else:
            dimensions = tuple(float(v) for v in self.dimensions)
        object.__setattr__(self, "dimensions", dimensions)

    @classmethod
    def load(cls, path: Union[str, PathLike], flags: int = SAMPLER_NONE) -> Sprite:
        """Make a sprite covering a whole texture loaded from ``path``."""
        return cls(Texture.load(path, flags))

    def has_texture(self) -> bool:
        return bool(self.texture)

    def crop(self, new_origin: Vec2, new_dimensions: Vec2 = (0.0, 0.0)) -> Sprite:
        """Return the part of this sprite at ``new_origin``, relative to this one.

        Zero dimensions mean: everything from the new origin to the edge.
        """
        ox, oy = (float(v) for v in new_origin)
        nw, nh = (float(v) for v in new_dimensions)
        width, height = self.dimensions
        if ox > width:
            logger.warning(
                "Requested origin.x (%s) is greater than original (%s)", ox, width
            )
        if oy > height:
            logger.warning(
                "Requested origin.y (%s) is greater than original (%s)", oy, height
            )
        if nw > width - ox:
            logger.warning(
                "Requested dimensions.x (%s) is greater than available (%s)",
                nw,
                width - ox,
            )
        if nh > height - oy:
            logger.warning(
                "Requested dimensions.y (%s) is greater than available (%s)",
                nh,
                height - oy,
            )
        origin = (self.origin[0] + ox, self.origin[1] + oy)
        if (nw, nh) == (0.0, 0.0):
            dimensions = (width - ox, height - oy)
        else:
            dimensions = (nw, nh)
        return dataclasses.replace(self, origin=origin, dimensions=dimensions)

    def get_display_rect(self) -> tuple[Vec2, Vec2]:
        """Corners of the sprite in texture coordinates (0 to 1)."""
        tex_width, tex_height = self.texture.get_valid().get_dimensions()
        x, y = self.origin
        width, height = self.dimensions
        return (
            (x / tex_width, y / tex_height),
            ((x + width) / tex_width, (y + height) / tex_height),
        )

    def get_size(self) -> Vec2:
        return self.dimensions


def split_spritesheet(
    spritesheet: Sprite,
    frame_dimensions: Vec2,
    frames_offset: int = 0,
    frames_count: int = 0,
    frame_padding: Vec2 = (0.0, 0.0),
) -> list[Sprite]:
    """Cut a grid sprite sheet into frames, row by row.

    ``frames_count`` of zero takes every frame from ``frames_offset`` on.
    """
    if not spritesheet.has_texture():
        raise EngineError("Invalid sprite sheet.")
    frame_width, frame_height = (float(v) for v in frame_dimensions)
    if not (frame_width > 0 and frame_height > 0):
        raise EngineError("frame dimensions have to be greater than zero.")
    pad_x, pad_y = (float(v) for v in frame_padding)

    sheet_width, sheet_height = spritesheet.get_size()
    step_x = frame_width + 2 * pad_x
    step_y = frame_height + 2 * pad_y
    columns_count = int(sheet_width / step_x)
    rows_count = int(sheet_height / step_y)
    max_frames_count = columns_count * rows_count

    if not frames_offset < max_frames_count:
        raise EngineError("Invalid frames_offset parameter.")
    if not frames_offset + frames_count <= max_frames_count:
        raise EngineError("Invalid frames_offset parameter.")

    end = frames_offset + frames_count if frames_count > 0 else max_frames_count
    logger.debug(
        "Splitting sprite sheet, columns_count: %d, rows_count: %d, frames: %d-%d.",
        columns_count,
        rows_count,
        frames_offset,
        end - 1,
    )

    frames = []
    for index in range(frames_offset, end):
        row, col = divmod(index, columns_count)
        crop_point = (step_x * col + pad_x, step_y * row + pad_y)
        frames.append(spritesheet.crop(crop_point, (frame_width, frame_height)))
    return frames