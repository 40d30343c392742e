[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pbfluid"
version = "0.1.0"
description = "Position-based fluid simulation of particles in a tank, with an interactive viewer"
requires-python = ">=3.10"
keywords = ["fluid", "simulation", "position-based fluids", "sph", "physics", "particles"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering :: Visualization",
]
dependencies = [
    "numpy",
    "matplotlib",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
pbfluid = "pbfluid.app:main"

[tool.hatch.build.targets.wheel]
packages = ["pbfluid"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
