[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netstack"
version = "0.1.0"
description = "Building blocks for a user-space network stack: addresses, Internet checksums, packet buffers, Ethernet frames and ICMP messages."
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = [
    "networking",
    "ethernet",
    "icmp",
    "checksum",
    "packets",
    "raw-sockets",
    "protocol",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
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
]

[tool.hatch.build.targets.wheel]
packages = ["netstack"]

[tool.hatch.build.targets.sdist]
include = [
    "netstack",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
