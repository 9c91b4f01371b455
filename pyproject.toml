[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rankboard"
version = "0.1.0"
description = "In-memory leaderboards backed by an order-statistic AVL tree, with snapshot-friendly saving and JSON request handling."
requires-python = ">=3.10"
dependencies = []
keywords = ["leaderboard", "ranking", "avl", "order-statistic tree", "scores"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rankboard"]

[tool.pytest.ini_options]
addopts = "-ra"
