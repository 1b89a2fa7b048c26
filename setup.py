# setup.py
from setuptools import find_packages, setup

setup(
    name="iacrunner",
    version="0.1.0",
    description="Run terraform (and compatible) invocations as CI build steps.",
    packages=find_packages(include=["iacrunner", "iacrunner.*"]),
    python_requires=">=3.8",
    install_requires=["click>=8.0", "rich", "python-dotenv"],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "iacrunner=iacrunner.main:main",
        ]
    },
)
