[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tetrisduel"
version = "0.1.0"
description = "Terminal falling-block puzzle game with a solo client and a two-player versus server over TCP"
requires-python = ">=3.10"
dependencies = []
keywords = ["tetris", "puzzle", "game", "curses", "terminal", "multiplayer", "server"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console :: Curses",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Puzzle Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tetrisduel = "tetrisduel.app:main"
tetrisduel-server = "tetrisduel.server:main"

[tool.hatch.build.targets.wheel]
packages = ["tetrisduel"]

[tool.pytest.ini_options]
addopts = "-ra"
