[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rpgclient"
version = "0.1.0"
description = "Headless client core for a tile-based online role-playing game: wire protocol, map data, animation states and scene logic"
requires-python = ">=3.10"
dependencies = []
keywords = ["rpg", "mmo", "game-client", "protocol", "tilemap"]
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
    "Topic :: Games/Entertainment :: Role-Playing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rpgclient = "rpgclient.app:main"

[tool.hatch.build.targets.wheel]
packages = ["rpgclient"]

[tool.pytest.ini_options]
addopts = "-ra"
