[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "bplusfile"
version = "0.1.0"
description = "A disk-based B+ tree of fixed-size records stored in a paged block file"
requires-python = ">=3.10"
dependencies = []
keywords = ["b+ tree", "index", "block file", "buffer pool", "database"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
bplusfile = "bplusfile.cli:main"

[tool.setuptools]
packages = ["bplusfile"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
