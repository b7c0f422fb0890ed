[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "neoshell"
version = "0.1.0"
description = "A small interactive shell with pipes, logical operators, redirections, here-documents and wildcards"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "command-line", "interpreter", "pipes", "redirection"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
neoshell = "neoshell.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["neoshell"]

[tool.pytest.ini_options]
addopts = "-ra"
