[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kaaengine"
version = "0.1.0"
description = "Building blocks for a 2D game engine: frame statistics, timers, views, transitions, textures, sprites and bitmaps."
requires-python = ">=3.10"
keywords = ["game", "engine", "2d", "sprites", "transitions", "timers", "statistics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["kaaengine"]

[tool.pytest.ini_options]
addopts = "-ra"
