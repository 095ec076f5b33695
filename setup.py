# setup.py
from setuptools import setup, find_packages

setup(
    name="chronoskit",
    version="0.1",
    packages=find_packages(include=["chronoskit", "chronoskit.*"],
                           exclude=["chronoskit.tests", "chronoskit.acceptance_tests", "chronoskit.acceptance_tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "SQLAlchemy>=2.0",
        "psycopg2-binary>=2.9.6",
        "python-dotenv>=1.0",
        "pandas>=1.5",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "chronoskit = chronoskit.cli:main"
        ]
    }
)
