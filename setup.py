#!/usr/bin/env python3
"""
Setup configuration for Lyrics-Slides
Lyrics lookup, cleanup and caching for slide generation
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core requirements (always installed)
core_requirements = [
    "aiohttp>=3.9.1",
    "asyncio-throttle>=1.0.2",
    "beautifulsoup4>=4.12.0",
    "click>=8.1.7",
    "pyyaml>=6.0.1",
    "tqdm>=4.66.1",
    "colorama>=0.4.6",
    "python-dotenv>=1.0.0",
    "openai>=1.30.0",
    "anthropic>=0.25.0",
]

setup(
    name="lyrics-slides",
    version="0.4.0",
    author="Lyrics-Slides Team",
    description="Find, clean and cache song lyrics for presentation slides",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["lyrics_slides", "lyrics_slides.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
        "Topic :: Text Processing",
    ],
    python_requires=">=3.10",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-asyncio>=0.21.1",
            "black>=23.11.0",
            "flake8>=6.1.0",
            "mypy>=1.7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lyrics-slides=lyrics_slides.main:cli",
        ],
    },
    include_package_data=True,
    package_data={
        "lyrics_slides": ["config/*.yaml"],
    },
    keywords="lyrics slides scraping big5 cli",
)
