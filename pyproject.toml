[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "serialio"
version = "1.0.0"
description = "Serial port access with termios: timed reads and writes, line reading, modem lines and port discovery"
requires-python = ">=3.10"
dependencies = []
keywords = ["serial", "termios", "tty", "rs232", "uart"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
serialio = "serialio.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["serialio"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
