# setup.py
from setuptools import setup, find_packages

setup(
    name="bencodec",
    version="0.1",
    description="Type-directed bencode encoder and decoder",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        # standard library only
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.10",
)
