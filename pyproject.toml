[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gtdkit"
version = "0.1.0"
description = "Turn a plain-text knowledge base into a Getting Things Done system"
requires-python = ">=3.10"
keywords = ["gtd", "todo", "tasks", "markdown", "productivity"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
]
dependencies = [
    "termcolor",
    "aiohttp",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
gtd-cli = "gtdkit.cli:main"
gtd-inbox = "gtdkit.inbox:main"
gtd-server = "gtdkit.server:main"

[tool.hatch.build.targets.wheel]
packages = ["gtdkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
