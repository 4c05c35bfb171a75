[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "natschannel"
version = "0.1.0"
description = "Resource types, status lifecycle, validation and API clients for NATS Streaming and JetStream messaging channels"
requires-python = ">=3.10"
dependencies = []
keywords = ["nats", "jetstream", "channel", "messaging", "eventing", "kubernetes", "custom-resource"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["natschannel"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
