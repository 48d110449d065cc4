"""Setup script for the Trade Journal import engine."""

from setuptools import setup, find_packages

setup(
    name="trade-journal",
    version="1.0.0",
    description="Broker trade-log import and reconciliation for a trading journal",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "python-dotenv>=1.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "trade-journal=trade_journal.cli.main:main",
        ],
    },
)
