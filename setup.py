from setuptools import setup, find_packages

setup(
    name="ntnb_engine",
    version="0.1.0",
    description="NTN-B (inflation-linked Brazilian treasury) pricing and cash-flow engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
