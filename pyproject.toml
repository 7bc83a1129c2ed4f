[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wifidog"
version = "1.3.0"
description = "Captive-portal gateway building blocks: an embedded HTTP server, IP ACLs, a client list and a small JSON tree"
requires-python = ">=3.10"
dependencies = []
keywords = ["captive-portal", "gateway", "http-server", "acl", "json", "hotspot"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
wifidog = "wifidog.commandline:main"

[tool.hatch.build.targets.wheel]
packages = ["wifidog"]

[tool.hatch.build.targets.sdist]
include = ["wifidog", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
