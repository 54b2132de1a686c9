from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="movietracker-sync",
    version="0.1.0",
    # Repo convention: all code lives under `backend/` and is imported as
    # top-level packages (`import domain`, `import application`, ...).
    package_dir={"": "backend"},
    packages=find_packages(
        where="backend",
        include=[
            "domain",
            "domain.*",
            "application",
            "application.*",
            "infrastructure",
            "infrastructure.*",
            "config",
            "config.*",
            "client",
            "client.*",
        ],
    ),
    python_requires=">=3.10",
    install_requires=[
        "pydantic==2.10.6",
        "pyyaml>=6.0",
        "aiohttp>=3.9",
        "python-dotenv>=1.0",
    ],
)
