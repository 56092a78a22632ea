[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "elfnm"
version = "0.1.0"
description = "List the symbols of ELF object files, in the manner of nm"
requires-python = ">=3.10"
dependencies = []
keywords = ["elf", "nm", "symbols", "binutils", "object-file"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
elfnm = "elfnm.nm:main"

[tool.hatch.build.targets.wheel]
packages = ["elfnm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
