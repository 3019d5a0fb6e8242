"""Setup script for the clickhouse_stream client."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="clickhouse-stream",
    version="0.1.0",
    author="",
    author_email="",
    description="Streaming query client for ClickHouse over HTTP",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
    ],
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.28",
        "urllib3>=2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "responses>=0.23",
            "black>=23.0",
            "mypy>=1.0",
        ],
    },
)
