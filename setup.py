from setuptools import setup, find_packages

from src import __version__

setup(
    name="reactlyve-core",
    version=__version__,
    description="Quota-gated content and reaction lifecycle engine",
    author="Your Name",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "boto3>=1.34.0",
        "click>=8.1.7",
        "Pillow>=10.1.0",
        "psycopg2-binary>=2.9.9",
        "pydantic-settings>=2.1.0",
        "python-dateutil>=2.8.2",
        "python-dotenv>=1.0.0",
        "rich>=13.7.0",
        "sqlalchemy>=2.0.23,<2.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "reactlyve-cli=cli.main:cli",
        ],
    },
    python_requires=">=3.10",
)
