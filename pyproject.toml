[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtnlreq"
version = "0.1.0"
description = "Builders for rtnetlink route, rule, neighbour and traffic-control requests"
requires-python = ">=3.10"
dependencies = []
keywords = ["netlink", "rtnetlink", "routing", "traffic-control", "neighbour", "networking"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["rtnlreq"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
