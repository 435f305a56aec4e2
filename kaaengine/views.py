"""Render views: z-indexed viewports, sets of views and their manager."""

from __future__ import annotations

import enum
from typing import Iterable, Iterator

from kaaengine.resources import EngineError

MAX_VIEWS = 32
VIEWS_MIN_Z_INDEX = -(MAX_VIEWS // 2)
VIEWS_MAX_Z_INDEX = MAX_VIEWS // 2 - 1
VIEWS_Z_INDEX_TO_INTERNAL_OFFSET = -VIEWS_MIN_Z_INDEX
VIEWS_DEFAULT_Z_INDEX = 0
# internal index 0 is reserved for engine use
VIEWS_RESERVED_OFFSET = 1

_ALL_BITS = (1 << MAX_VIEWS) - 1


class ClearFlag(enum.IntFlag):
    """What a view clears before it is drawn."""

    none = 0x0000
    color = 0x0001
    depth = 0x0002
    stencil = 0x0004
    discard_color0 = 0x0008
    discard_color1 = 0x0010
    discard_color2 = 0x0020
    discard_color3 = 0x0040
    discard_color4 = 0x0080
    discard_color5 = 0x0100
    discard_color6 = 0x0200
    discard_color7 = 0x0400
    discard_depth = 0x0800
    discard_stencil = 0x1000
    discard_color_mask = 0x07F8
    discard_mask = 0x1FF8


def validate_view_z_index(z_index: int) -> bool:
    """Tell whether ``z_index`` names an existing view."""
    return VIEWS_MIN_Z_INDEX <= z_index <= VIEWS_MAX_Z_INDEX


def _check_z_index(z_index: int) -> None:
    if not validate_view_z_index(z_index):
        raise ValueError(f"Invalid view z-index: {z_index}")


class ViewIndexSet:
    """A set of view z-indexes, stored as a bit mask."""

    __slots__ = ("_bits",)

    def __init__(self, z_indexes: Iterable[int] = ()) -> None:
        bits = 0
        for z_index in z_indexes:
            _check_z_index(z_index)
            bits |= 1 << (z_index + VIEWS_Z_INDEX_TO_INTERNAL_OFFSET)
        self._bits = bits

    @classmethod
    def _from_bits(cls, bits: int) -> ViewIndexSet:
        instance = cls()
        instance._bits = bits & _ALL_BITS
        return instance

    def _positions(self) -> Iterator[int]:
        return (i for i in range(MAX_VIEWS) if self._bits >> i & 1)

    def z_indexes(self) -> list[int]:
        """Active z-indexes, lowest first."""
        return [i - VIEWS_Z_INDEX_TO_INTERNAL_OFFSET for i in self._positions()]

    def internal_indexes(self) -> list[int]:
        """Renderer view indexes of the active views, lowest first."""
        return [i + VIEWS_RESERVED_OFFSET for i in self._positions()]

    def all(self) -> bool:
        return self._bits == _ALL_BITS

    def any(self) -> bool:
        return self._bits != 0

    def none(self) -> bool:
        return self._bits == 0

    def __iter__(self) -> Iterator[int]:
        return iter(self.z_indexes())

    def __len__(self) -> int:
        return bin(self._bits).count("1")

    def __contains__(self, z_index: object) -> bool:
        return isinstance(z_index, int) and validate_view_z_index(z_index) and self[z_index]

    def __getitem__(self, z_index: int) -> bool:
        _check_z_index(z_index)
        return bool(self._bits >> (z_index + VIEWS_Z_INDEX_TO_INTERNAL_OFFSET) & 1)

    def __setitem__(self, z_index: int, active: bool) -> None:
        _check_z_index(z_index)
        mask = 1 << (z_index + VIEWS_Z_INDEX_TO_INTERNAL_OFFSET)
        if active:
            self._bits |= mask
        else:
            self._bits &= ~mask

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ViewIndexSet):
            return NotImplemented
        return self._bits == other._bits

    def __lt__(self, other: ViewIndexSet) -> bool:
        if not isinstance(other, ViewIndexSet):
            return NotImplemented
        return self._bits < other._bits

    def __hash__(self) -> int:
        return hash(self._bits)

    def __or__(self, other: ViewIndexSet) -> ViewIndexSet:
        return ViewIndexSet._from_bits(self._bits | other._bits)

    def __and__(self, other: ViewIndexSet) -> ViewIndexSet:
        return ViewIndexSet._from_bits(self._bits & other._bits)

    def __ior__(self, other: ViewIndexSet) -> ViewIndexSet:
        self._bits |= other._bits
        return self

    def __iand__(self, other: ViewIndexSet) -> ViewIndexSet:
        self._bits &= other._bits
        return self

    def __repr__(self) -> str:
        return f"ViewIndexSet({set(self.z_indexes())!r})"


class View:
    """One viewport: placement in virtual space, clear settings and projection."""

    def __init__(self, index: int, dimensions: tuple[int, int]) -> None:
        self._index = index
        self._dimensions = tuple(dimensions)
        self._origin: tuple[int, int] = (0, 0)
        self._clear_color: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
        self._clear_flags = ClearFlag.none | ClearFlag.depth | ClearFlag.color
        self._is_dirty = True
        self._requires_clean = False
        self.view_rect: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
        self.projection: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)

    @property
    def internal_index(self) -> int:
        return self._index

    @property
    def z_index(self) -> int:
        return self._index - VIEWS_RESERVED_OFFSET - MAX_VIEWS // 2

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def requires_clean(self) -> bool:
        return self._requires_clean

    @property
    def clear_flags(self) -> ClearFlag:
        return self._clear_flags

    @property
    def origin(self) -> tuple[int, int]:
        return self._origin

    @origin.setter
    def origin(self, origin: tuple[int, int]) -> None:
        origin = tuple(origin)
        if origin != self._origin:
            self._origin = origin
            self._is_dirty = True

    @property
    def dimensions(self) -> tuple[int, int]:
        return self._dimensions

    @dimensions.setter
    def dimensions(self, dimensions: tuple[int, int]) -> None:
        dimensions = tuple(dimensions)
        if dimensions != self._dimensions:
            self._dimensions = dimensions
            self._is_dirty = True

    @property
    def clear_color(self) -> tuple[float, float, float, float]:
        return self._clear_color

    @clear_color.setter
    def clear_color(self, color: tuple[float, float, float, float]) -> None:
        self._clear_color = tuple(color)
        self._clear_flags |= ClearFlag.color
        self._requires_clean = True

    def reset_clear_color(self) -> None:
        """Stop clearing the colour buffer of this view."""
        self._clear_flags &= ~ClearFlag.color
        self._requires_clean = True

    def refresh(
        self,
        virtual_resolution: tuple[float, float],
        drawable_area: tuple[float, float],
        border_size: tuple[float, float],
    ) -> None:
        """Recompute the on-screen rectangle and the orthographic projection bounds."""
        rect: list[float] = [0.0, 0.0, 0.0, 0.0]
        bounds: list[tuple[float, float]] = []
        for axis in (0, 1):
            resolution = float(virtual_resolution[axis])
            area = float(drawable_area[axis])
            v_origin = float(self._origin[axis])
            v_size = float(self._dimensions[axis])

            view_size = v_size / resolution * area
            view_origin = v_origin / resolution * area
            clipped_origin = max(view_origin, 0.0)
            clipped_size = view_size - clipped_origin + view_origin
            clipped_size = min(clipped_size, area - clipped_origin)
            size_factor = clipped_size / view_size
            displacement = min(0.0, v_origin) + max(0.0, v_origin + v_size - resolution)

            rect[axis] = clipped_origin + float(border_size[axis])
            rect[axis + 2] = clipped_size
            half = v_size * size_factor / 2
            bounds.append((-half - displacement / 2, half - displacement / 2))

        (left, right), (top, bottom) = bounds
        self.view_rect = tuple(rect)
        # y axis points down: bottom is the positive bound
        self.projection = (left, right, bottom, top)
        self._is_dirty = False

    def __repr__(self) -> str:
        return f"View(z_index={self.z_index}, origin={self._origin}, dimensions={self._dimensions})"


class ViewsManager:
    """Holds every view of a scene, addressed by z-index."""

    def __init__(self, virtual_resolution: tuple[int, int]) -> None:
        self._views = [
            View(i + VIEWS_RESERVED_OFFSET, virtual_resolution) for i in range(MAX_VIEWS)
        ]

    def get(self, z_index: int) -> View:
        if not validate_view_z_index(z_index):
            raise EngineError("Invalid view z_index.")
        return self._views[z_index + MAX_VIEWS // 2]

    def __getitem__(self, z_index: int) -> View:
        return self.get(z_index)

    def __iter__(self) -> Iterator[View]:
        return iter(self._views)

    def __len__(self) -> int:
        return MAX_VIEWS

    @property
    def default(self) -> View:
        return self.get(VIEWS_DEFAULT_Z_INDEX)

    def mark_dirty(self) -> None:
        for view in self._views:
            view._is_dirty = True