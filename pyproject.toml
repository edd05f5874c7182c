[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "habicat"
version = "0.1.0"
description = "Per-triangle surface complexity layers for 3D meshes: rugosity, fractal dimension, vector dispersion and more"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "shapely",
]
keywords = [
    "mesh",
    "rugosity",
    "fractal dimension",
    "vector dispersion",
    "surface complexity",
    "habitat",
    "3d",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
    "Topic :: Scientific/Engineering :: GIS",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["habicat"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
