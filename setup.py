#!/usr/bin/env python

"""
Install sccall with:
 `pip install .`

Or, for developers, install in editable mode with the test extra:
 `pip install -e .[test]`
"""

import re
from setuptools import setup, find_packages


# Read the version from the package __init__ without importing it.
INITFILE = "sccall/__init__.py"
CUR_VERSION = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]",
                        open(INITFILE, "r").read(),
                        re.M).group(1)

setup(
    name="sccall",
    version=CUR_VERSION,
    description=(
        "Significance filtering of pooled single-cell pileups and "
        "per-cluster genotype calling under a sequencing-error model"
    ),
    packages=find_packages(include=["sccall", "sccall.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "scipy",
        "numba",
        "pandas",
        "pysam",
        "loguru",
        "pydantic>=2",
        "ipython",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={'console_scripts': ['sccall = sccall.__main__:main']},
    license='GPL',
    classifiers=[
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
)
