[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cephalopod"
version = "0.1.0"
description = "2D game-engine core: geometry helpers, sprite packing, sprite-sheet atlases, scene transitions, JSON and image encoders"
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "2d", "sprites", "sprite-sheet", "json", "png", "jpeg", "bmp", "tga", "hdr"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment",
    "Topic :: Multimedia :: Graphics",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cephalopod"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
