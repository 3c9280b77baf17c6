"""
Setup configuration for CKAN Rating package.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

# Read requirements from requirements.txt
requirements = []
try:
    with open(this_directory / "requirements.txt") as f:
        requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]
except FileNotFoundError:
    pass

setup(
    name="ckan-rating",
    version="0.1.0",
    author="CKAN Rating Team",
    author_email="contact@ckan-rating.dev",
    description="Crowd rating ledger for CKAN datasets, mirrored onto dataset extras",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/ckan-rating/ckan-rating",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Topic :: Internet :: WWW/HTTP",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ckan-rating=rating_core.cli:main",
        ],
    },
    project_urls={
        "Bug Reports": "https://github.com/ckan-rating/ckan-rating/issues",
        "Source": "https://github.com/ckan-rating/ckan-rating",
    },
    keywords="ckan open-data dataset rating catalog metadata",
)
