#!/usr/bin/env python3
"""
Setup configuration for lyrics-aggregator
Song matching and synced lyrics normalization across providers
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "rapidfuzz>=3.0.0",
    "click>=8.1.7",
    "rich-click>=1.7.0",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
]

setup(
    name="lyrics-aggregator",
    version="0.1.0",
    author="lyrics-aggregator",
    description="Match songs across lyrics providers and normalize time-synced lyrics",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Text Processing :: Markup :: XML",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lyrics-agg=lyrics_aggregator.cli:main",
        ],
    },
    keywords="lyrics synced ttml musixmatch spotify lrclib matching cli",
)
