from setuptools import setup, find_packages


setup(
    name="cardfix",
    version="0.1.0",
    description="In-process web chat / bot channel simulator showing the Action.Execute drop and its fix",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.5",
        "pydantic-settings>=2.0",
        "typer>=0.9",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "cardfix=cardfix.cli:app",
        ]
    },
    python_requires=">=3.10",
)
