[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fortanode"
version = "0.1.0"
description = "Configuration, metrics, rate limiting, health status rendering and container helpers for a Forta scan node"
requires-python = ">=3.10"
keywords = ["forta", "scan-node", "monitoring", "json-rpc", "rate-limiting", "health", "containers"]
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
    "Topic :: System :: Monitoring",
]
dependencies = [
    "pyyaml",
    "requests",
    "termcolor>=2.1",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["fortanode"]

[tool.hatch.build.targets.sdist]
include = ["fortanode", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
