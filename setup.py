"""Setup script for EngBuddy."""

from setuptools import setup, find_packages

setup(
    name="engbuddy",
    version="1.0.0",
    description="Conversational English writing tutor with spoken replies",
    author="Your Name",
    packages=find_packages(include=["engbuddy", "engbuddy.*"]),
    python_requires=">=3.11",
    install_requires=[
        "python-dotenv>=1.0.0",
        "google-generativeai>=0.8.0",
        "elevenlabs>=2.0.0",
        "numpy>=1.24.0",
        "sounddevice>=0.4.6",
        "structlog>=23.0.0",
        "click>=8.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "engbuddy=engbuddy.cli.main:cli",
        ],
    },
)
