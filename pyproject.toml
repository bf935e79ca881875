[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ossim"
version = "0.1.0"
description = "A small operating-system simulator with multi-level queue scheduling and paged virtual memory"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "simulator",
    "scheduler",
    "paging",
    "virtual-memory",
    "education",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ossim = "ossim.simulator:main"

[tool.hatch.build.targets.wheel]
packages = ["ossim"]

[tool.pytest.ini_options]
addopts = "-ra"
