[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "constraint2d"
version = "0.1.0"
description = "A small 2D rigid-body constraint solver with pluggable linear and ODE solvers"
requires-python = ">=3.10"
dependencies = []
keywords = ["physics", "rigid body", "constraint solver", "simulation", "2d"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["constraint2d"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
