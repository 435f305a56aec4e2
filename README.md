# kaaengine

Building blocks for a 2D game engine. Each module works on its own and
none of them needs a window or a graphics device.

## Modules

- `kaaengine.statistics`: named per-frame statistics.
  - `FrameStatisticTracker` keeps the most recent values of one statistic in a
    ring buffer. The default capacity is 256. `analyse()` returns a
    `StatisticAnalysis` with the sample count, last, min, max and mean values
    and the standard deviation.
  - `StatisticsManager` is a thread-safe set of trackers keyed by name.
    `get_global_statistics_manager()` returns the process-wide instance.
  - `CounterStatAutoPusher` and `StopwatchStatAutoPusher` are context managers.
    When the `with` block ends they push a count, or the elapsed time in
    seconds.
  - `pack_stats_data` packs `(name, value)` pairs into a binary message.
    `parse_endpoint` splits `host[:port]`.
  - `UDPStatsExporter` sends packed stats over UDP.
    `try_make_udp_stats_exporter` builds one from the environment.
- `kaaengine.syscalls`: `SyncedSyscallQueue`. A thread calls
  `make_sync_call(func)` and blocks. The call runs when another thread calls
  `finalize_calls()`. Results and exceptions go back to the caller.
- `kaaengine.resources`:
  - `Resource` is the base for things that are set up and torn down with the
    engine.
  - `ResourceReference` is a possibly empty handle. `get_valid()` raises
    `EngineError` when the resource is missing or not initialized.
  - `ResourcesRegistry` maps keys to resources through weak references.
- `kaaengine.bitmaps`: `Bitmap` and `BitmapView`.
  - Pixels are stored row by row.
  - `at`, `set` and `[x, y]` indexing raise `IndexError` when out of bounds.
  - `blit` raises `ValueError` when the source would overflow the target.
- `kaaengine.views`:
  - `ViewIndexSet` is a set of view z-indexes, from -16 to 15. It supports
    `|`, `&`, ordering and hashing.
  - `View` holds the origin, dimensions and clear colour of one view.
    `refresh()` computes its screen rectangle and projection bounds.
  - `ViewsManager` holds all 32 views.
  - Also provided: `ClearFlag` and `validate_view_z_index`.
- `kaaengine.timers`: `Timer` and `TimersManager`.
  - A timer callback receives a `TimerContext`.
  - It returns the next interval. `None` or a value not greater than zero stops
    the timer.
  - `TimersManager.process(dt)` advances time and fires the timers that are due.
- `kaaengine.transitions`: `TransitionWarping` (loops and back-and-forth) and
  `NodeTransitionCustomizable`. Subclass the latter and implement `evaluate`.
  - Groups: `NodeTransitionsSequence` and `NodeTransitionsParallel`.
  - `NodeTransitionDelay` only takes time. `NodeTransitionCallback` calls a
    function.
  - `NodeTransitionRunner` and `NodeTransitionsManager` drive transitions on a
    node.
- `kaaengine.textures`: `Texture`, backed by a Pillow image.
  - `Texture.load(path)` reuses a live texture loaded from the same path.
  - `Texture.from_image(image)` wraps an image already in memory.
  - `initialize_textures()` and `uninitialize_textures()` switch registered
    textures on and off.
- `kaaengine.sprites`:
  - `Sprite` is a rectangular region of a texture. It offers `crop` and
    `get_display_rect` (texture coordinates from 0 to 1).
  - `split_spritesheet` cuts a grid sheet into frames.

## Installation

```
pip install .
```

## Examples

```python
from kaaengine.bitmaps import Bitmap

src = Bitmap((3, 3))
src.set(0, 0, 10)
dst = Bitmap((5, 5))
dst.blit(src.view(), (1, 2))
assert dst.at(1, 2) == 10
```

```python
from kaaengine.statistics import StatisticsManager, CounterStatAutoPusher

manager = StatisticsManager()
manager.push_value("frame:time", 0.016)
with CounterStatAutoPusher("nodes:count", manager) as counter:
    counter += 3
for name, analysis in manager.get_analysis_all():
    print(name, analysis.mean_value)
```

```python
from kaaengine.timers import Timer, TimersManager

timers = TimersManager()
fired = []
timer = Timer(lambda ctx: fired.append(ctx.interval))  # returns None: fires once
timer.start(1.0, timers)
timers.process(0.5)
timers.process(0.6)
assert fired == [1.0] and not timer.is_running()
```

```python
from kaaengine.transitions import (
    NodeTransitionCallback, NodeTransitionDelay,
    NodeTransitionsManager, NodeTransitionsSequence,
)

calls = []
sequence = NodeTransitionsSequence(
    [NodeTransitionDelay(1.0), NodeTransitionCallback(calls.append)]
)
manager = NodeTransitionsManager()
node = object()
manager.set("wait-then-call", sequence)
manager.step(node, 0.5)
manager.step(node, 0.6)
assert calls == [node] and not manager
```

## Statistics export

`try_make_udp_stats_exporter()` reads the environment variable
`KAAENGINE_STATS_EXPORTER_UDP`. It accepts `host` or `host:port`, and the
default port is 9771. When the variable is unset or empty, the function returns
`None`.

Each datagram starts with a 32-byte header:

- the magic `KAACOREstats`
- a little-endian 16-bit version, 1
- a 16-bit segment count
- 16 reserved bytes

The header is followed by one 48-byte segment per stat. Each segment holds the
name, NUL-padded to 40 bytes, and an 8-byte double.

## What this package does not do

It has no window, renderer, input handling, audio, scenes, nodes or physics.

- Textures keep their pixels as Pillow images. Their `handle` is only a number
  given out when the texture is initialized; nothing is uploaded to a GPU.
- `View.refresh` is passed the resolution, drawable area and border size
  explicitly.
- Transitions and timers work on any object you pass as the node or scene.

## Running the tests

```
pip install .[test]
pytest
```