from setuptools import setup, find_packages

setup(
    name="tiegraph",
    version="0.1.0",
    description="Build weighted social networks from communication events (similarity and windowed ties)",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "networkx",
        "numpy",
        "pandas",
        "scipy",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.10",
    author="tiegraph developers",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
