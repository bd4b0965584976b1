[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "actionchaos"
version = "0.1.0"
description = "Procedural multi-floor arena generation, wave management and enemy AI tasks for a wave-based shooter"
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "procedural-generation", "map-generation", "waves", "behaviour-tree"]
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
    "Topic :: Games/Entertainment :: First Person Shooters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["actionchaos"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
