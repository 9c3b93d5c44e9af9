[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vless"
version = "0.1.0"
description = "Terminal pager building blocks: V8-style regular expressions, tags lookup, colour and terminal control, keyboard input"
requires-python = ">=3.10"
dependencies = []
keywords = ["pager", "terminal", "termcap", "regexp", "ctags", "gtags", "sgr"]
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
    "Topic :: Utilities",
    "Topic :: Terminals",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vless"]

[tool.pytest.ini_options]
addopts = "-ra"
