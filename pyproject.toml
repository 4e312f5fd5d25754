[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "uthreads"
version = "0.1.0"
description = "Cooperative user-level threads with a FIFO scheduler, semaphores and optional preemption"
requires-python = ">=3.10"
dependencies = []
keywords = ["threads", "scheduler", "semaphore", "cooperative", "green-threads", "queue"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
uthreads-demo = "uthreads.demos:main"

[tool.setuptools]
packages = ["uthreads"]

[tool.pytest.ini_options]
addopts = "-ra"
