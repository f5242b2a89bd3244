[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webtestkit"
version = "0.1.0"
description = "Helpers for browser-based web tests: capabilities merging, test metadata, runfiles lookup and small HTTP utilities."
requires-python = ">=3.10"
keywords = ["webdriver", "capabilities", "testing", "browser", "bazel", "runfiles"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["webtestkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
