from setuptools import setup, find_packages

setup(
    name="relbioav",
    version="0.1.0",
    description="Simulation and analysis of Phase 1 relative bioavailability studies",
    python_requires=">=3.9",

    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "numpy",
        "scipy",
        "pandas",
        "pyarrow",
        "matplotlib",
        "seaborn",
        "statsmodels",
        "pydantic>=2",
        "structlog",
        "typer",
        "rich",
        "tomli; python_version < '3.11'",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "relbioav=relbioav.cli.main:app",
        ],
    },
)
