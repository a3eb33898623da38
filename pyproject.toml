[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nanikanizer"
version = "0.1.0"
description = "A small automatic differentiation and neural network library over flat numpy arrays"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "automatic-differentiation",
    "autograd",
    "neural-network",
    "deep-learning",
    "convolution",
    "optimizer",
    "adam",
    "cifar-10",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
nanikanizer-curve-fit = "nanikanizer.curve_fitting:main"
nanikanizer-cifar10 = "nanikanizer.cifar10:main"

[tool.hatch.build.targets.wheel]
packages = ["nanikanizer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
