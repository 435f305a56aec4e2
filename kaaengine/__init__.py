"""Building blocks for a 2D game engine: statistics, main-thread call queue,
resources, bitmaps, views, timers, transitions, textures and sprites."""

__version__ = "0.1.0"

__all__ = [
    "bitmaps",
    "resources",
    "sprites",
    "statistics",
    "syscalls",
    "textures",
    "timers",
    "transitions",
    "views",
]