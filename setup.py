"""Setup configuration for chatwarden."""

from setuptools import setup, find_packages

setup(
    name="chatwarden",
    version="0.1.0",
    description="Moderation decision engine for real-time chat communities",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatwarden=chatwarden.main:main",
        ],
    },
)
