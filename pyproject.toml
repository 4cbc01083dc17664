[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "redirkit"
version = "0.71.0"
description = "Building blocks for transparent TCP redirection: stream encryption, Base64, an AVL tree, base settings and direct connections"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = [
    "proxy",
    "redirector",
    "transparent-proxy",
    "aead",
    "shadowsocks",
    "avl-tree",
    "base64",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Security :: Cryptography",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["redirkit"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
