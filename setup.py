from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

requirements = [
    "httpx>=0.25.0",
    "click>=8.1.0",
    "PyYAML>=6.0",
    "tenacity>=8.2.0",
    "jellyfish>=1.0.0",
    "isodate>=0.6.1",
]

test_requirements = [
    "pytest>=7.4.0",
    "pytest-asyncio>=0.21.0",
]

setup(
    name="tunesearch",
    version="1.0.0",
    author="TuneSearch Team",
    description="YouTube music search with relevance ranking, result caching and search history",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    entry_points={
        "console_scripts": [
            "tunesearch=tunesearch.cli:cli",
        ],
    },
)
