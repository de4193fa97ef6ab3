from setuptools import setup

import trimsa

VERSION = trimsa.__version__

with open('README.rst') as f:
    readme = f.read()

setup(
    name="trimsa",
    version=VERSION,
    packages=["trimsa",
              "trimsa.base",
              "trimsa.process",
              "trimsa.tests"],
    package_data={"trimsa.tests": ["data/*.*", "data/*/*"]},
    install_requires=[
        "progressbar2",
        "pandas",
        "numpy",
    ],
    extras_require={
        "test": ["pytest"]
    },
    python_requires=">=3.6",
    description=("Conversion, concatenation, splitting and filtering of "
                 "multiple sequence alignments for phylogenomics"),
    long_description=readme,
    author="Diogo N Silva",
    author_email="odiogosilva@gmail.com",
    license="GPL3",
    classifiers=["Development Status :: 4 - Beta",
                 "Intended Audience :: Science/Research",
                 "License :: OSI Approved :: GNU General Public License v3 ("
                 "GPLv3)",
                 "Natural Language :: English",
                 "Operating System :: POSIX :: Linux",
                 "Operating System :: MacOS :: MacOS X",
                 "Operating System :: Microsoft :: Windows",
                 "Programming Language :: Python",
                 "Programming Language :: Python :: 3",
                 "Topic :: Scientific/Engineering :: Bio-Informatics"],
    entry_points={
        "console_scripts": [
            "TriMSA = trimsa.TriMSA:main"
        ]
    },
)
