[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hubblecli"
version = "0.10.0"
description = "Command-line tool and output formatting for network flows, events and server status reported by a Hubble server"
requires-python = ">=3.10"
keywords = ["hubble", "network", "flows", "observability", "monitoring", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
hubblecli = "hubblecli.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["hubblecli"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
