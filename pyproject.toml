[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "finql"
version = "0.1.0"
description = "Toolbox for quantitative analysis of financial assets: time periods, discounting, market quotes and portfolio positions"
requires-python = ">=3.10"
dependencies = []
keywords = ["finance", "portfolio", "discounting", "market data", "quotes", "time periods"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Financial and Insurance Industry",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["finql"]

[tool.pytest.ini_options]
addopts = "-ra"
