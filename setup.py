"""
Planner Server setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="planner-server",
    version="1.0.0",
    description="Planner Server — department strategic plan store with session login",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "planner=planner.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
