[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gitfame"
version = "0.1.0"
description = "Per-person line, commit and file statistics for git repositories, with small generic and external-sort helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["git", "blame", "statistics", "authors", "external-sort"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Version Control :: Git",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gitfame = "gitfame.fame:main"

[tool.hatch.build.targets.wheel]
packages = ["gitfame"]

[tool.pytest.ini_options]
addopts = "-ra"
