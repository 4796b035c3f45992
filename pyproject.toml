[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "extraction-gym"
version = "0.1.0"
description = "E-graph extraction algorithms (bottom-up and greedy DAG), extraction checking and costing, and ILP building blocks."
requires-python = ">=3.10"
keywords = ["e-graph", "egraph", "extraction", "equality saturation", "ilp", "milp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["extraction_gym"]

[tool.hatch.build.targets.sdist]
include = ["extraction_gym", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
