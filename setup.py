"""
Setup script for career-sync project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="career-sync",
    version="0.1.0",
    packages=find_packages(include=["career_sync", "career_sync.*", "sync_service", "sync_service.*"]),
    py_modules=["version"],
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "python-dotenv>=1.0",
        "httpx>=0.27",
        "tenacity>=8.2",
        "redis>=5.0.1",
        "fastapi>=0.110",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "career-sync-service=sync_service.app:main",
        ],
    },
)
