[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clusterhub"
version = "1.0.0"
description = "Instrument cluster service core: vehicle state, CAN frame exchange, battery estimation and gauge geometry"
requires-python = ">=3.10"
dependencies = []
keywords = ["instrument-cluster", "can", "socketcan", "vehicle", "battery", "gauge"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
clusterhub = "clusterhub.app:main"

[tool.hatch.build.targets.wheel]
packages = ["clusterhub"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
