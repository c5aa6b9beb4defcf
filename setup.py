from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="samplegempy",
    version="0.1.0",
    author="EPFL-LCSB",
    author_email="lcsb@epfl.ch",
    description="Uniform hit-and-run sampling of the flux space of constraint-based metabolic models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/EPFL-LCSB/samplegempy",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
    ],
    python_requires=">=3.8",
    install_requires=[
        "cobra>=0.26.0",
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "matplotlib>=3.4.0",
        "tqdm>=4.60.0",
        "pyyaml>=5.4",
    ],
    extras_require={
        "test": ["pytest>=6.0"],
    },
    entry_points={
        "console_scripts": [
            "samplegempy=samplegempy.samplegem:main",
        ],
    },
)
