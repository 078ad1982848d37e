from setuptools import setup, find_packages
from pathlib import Path

# Read README.md if available, otherwise use a short description
readme_path = Path(__file__).parent / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")
else:
    long_description = "Declarative validation and casting of request parameters, with structured error reports."

setup(
    name="explicit_parameters",
    version="0.1.0",
    description="Declarative validation and casting of request parameters",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=6.0",
        "jsonschema>=4.20.0",
        "typer>=0.9.0",
        "pydantic>=2.0.0",
    ],
    entry_points={
        "console_scripts": [
            "explicit-params=explicit_parameters.cli:main",
        ],
    },
    extras_require={
        "dev": [
            "pytest",
            "coverage",
            "hypothesis",
        ],
    },
)
