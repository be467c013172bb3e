from setuptools import setup, find_packages

setup(
    name="shardstats",
    version="0.1.0",
    description="Mergeable entropy estimation and weighted reservoir sampling for map/combine/reduce jobs",
    author="adamfilli",
    packages=find_packages(include=["shardstats", "shardstats.*"]),
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    include_package_data=True,
    python_requires=">=3.10",
)
