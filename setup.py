"""
Setup script for declaration-service project.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="declaration-service",
    version="0.1.0",
    packages=find_packages(include=["declaration_service", "declaration_service.*"]),
    package_data={"declaration_service": ["templates/*.html"]},
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn[standard]>=0.27",
        "pydantic>=2.6",
        "pydantic-settings>=2.1",
        "playwright>=1.40",
        "jinja2>=3.1",
        "python-multipart>=0.0.9",
        "tenacity>=8.2",
        "pymongo>=4.6",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
            "pypdf>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "declaration-service=declaration_service.app:run",
        ],
    },
)
