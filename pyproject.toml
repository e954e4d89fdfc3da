[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "ovenmenu"
version = "0.1.0"
description = "Menu console, error log, data logging and menu table generation for a furnace control system"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "oven",
    "furnace",
    "control",
    "menus",
    "curses",
    "data logging",
    "fits",
    "error log",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console :: Curses",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ovenmenu-makemenus = "ovenmenu.makemenus:main"

[tool.setuptools.packages.find]
include = ["ovenmenu", "ovenmenu.*"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
