[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simple_conv"
version = "0.1.0"
description = "Small fully connected neural networks for digit recognition: training, inference, preprocessing and a compact binary network format."
requires-python = ">=3.10"
keywords = [
    "neural-network",
    "perceptron",
    "mnist",
    "gradient-descent",
    "softmax",
    "relu",
    "classification",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Scientific/Engineering :: Image Recognition",
]
dependencies = [
    "numpy>=1.23",
    "pillow>=9.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
simple-conv = "simple_conv.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["simple_conv"]

[tool.hatch.build.targets.sdist]
include = [
    "simple_conv",
    "tests",
    "pyproject.toml",
]

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
ignore_missing_imports = true
