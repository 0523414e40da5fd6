[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vectordb"
version = "0.1.0"
description = "An in-memory vector database with HNSW approximate nearest neighbour search, JSON persistence and an HTTP/WebSocket API"
requires-python = ">=3.10"
keywords = ["vector database", "hnsw", "nearest neighbour", "similarity search", "embeddings"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: aiohttp",
    "Topic :: Database :: Database Engines/Servers",
    "Topic :: Scientific/Engineering :: Information Analysis",
]
dependencies = [
    "aiohttp>=3.8",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[project.scripts]
vectordb = "vectordb.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["vectordb"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
