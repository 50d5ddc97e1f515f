"""
This module configures the package for distribution and installation.
"""

from setuptools import setup, find_packages

setup(
    name="mandelview",
    version="0.1.0",
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.9",
    install_requires=["pygame", "numpy", "mpmath", "pillow"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "mandelview = mandelview.__main__:main",
        ]
    },
)
