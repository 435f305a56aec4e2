"""Two-dimensional pixel grids with bounds-checked access and blitting."""

from __future__ import annotations

from typing import Generic, MutableSequence, TypeVar, Union

T = TypeVar("T")


class BitmapView(Generic[T]):
    """A row-major window onto a flat, mutable sequence of pixels."""

    def __init__(self, content: MutableSequence[T], dimensions: tuple[int, int]) -> None:
        if content is None:
            raise ValueError("Can't create BitmapView with no content")
        width, height = dimensions
        if len(content) < width * height:
            raise ValueError("BitmapView content is smaller than its dimensions")
        self.content = content
        self.dimensions = (width, height)

    def _index(self, x: int, y: int) -> int:
        width, height = self.dimensions
        if not 0 <= x < width:
            raise IndexError(f"Requested x={x} exceeds X dimensions size: {width}")
        if not 0 <= y < height:
            raise IndexError(f"Requested y={y} exceeds Y dimensions size: {height}")
        return y * width + x

    def at(self, x: int, y: int) -> T:
        return self.content[self._index(x, y)]

    def set(self, x: int, y: int, value: T) -> None:
        self.content[self._index(x, y)] = value

    def __getitem__(self, coords: tuple[int, int]) -> T:
        return self.at(*coords)

    def __setitem__(self, coords: tuple[int, int], value: T) -> None:
        self.set(*coords, value)

    def blit(self, source: Union[BitmapView[T], Bitmap[T]], target_coords: tuple[int, int]) -> None:
        """Copy all of ``source`` into this view with its corner at ``target_coords``."""
        if isinstance(source, Bitmap):
            source = source.view()
        src_width, src_height = source.dimensions
        tx, ty = target_coords
        width, height = self.dimensions
        if src_width + tx > width:
            raise ValueError(
                f"Blitting size ({src_width + tx}) would overflow X dimension ({width})"
            )
        if src_height + ty > height:
            raise ValueError(
                f"Blitting size ({src_height + ty}) would overflow Y dimension ({height})"
            )
        for row in range(src_height):
            target_start = width * (row + ty) + tx
            source_start = src_width * row
            self.content[target_start : target_start + src_width] = source.content[
                source_start : source_start + src_width
            ]


class Bitmap(Generic[T]):
    """A bitmap that owns its pixels, all starting at ``fill``."""

    def __init__(self, dimensions: tuple[int, int], fill: T = 0) -> None:
        width, height = dimensions
        self.dimensions = (width, height)
        self.container: list[T] = [fill] * (width * height)

    def view(self) -> BitmapView[T]:
        return BitmapView(self.container, self.dimensions)

    def at(self, x: int, y: int) -> T:
        return self.view().at(x, y)

    def set(self, x: int, y: int, value: T) -> None:
        self.view().set(x, y, value)

    def __getitem__(self, coords: tuple[int, int]) -> T:
        return self.at(*coords)

    def __setitem__(self, coords: tuple[int, int], value: T) -> None:
        self.set(*coords, value)

    def blit(self, source: Union[BitmapView[T], Bitmap[T]], target_coords: tuple[int, int]) -> None:
        self.view().blit(source, target_coords)