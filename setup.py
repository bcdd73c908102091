#!/usr/bin/env python

import io
import re

from setuptools import setup

with io.open("maxentml/__init__.py", "rt", encoding="utf8") as f:
    version = re.search(r"__version__ = '(.*?)'", f.read()).group(1)

from os import path

this_directory = path.abspath(path.dirname(__file__))

with io.open(path.join(this_directory, 'README.md'), encoding='utf-8') as file:
    long_description = file.read()


setup(
    name='maxentml',
    version=version,
    packages=['maxentml'],
    package_data={
        '': ['*.txt', '*.rst', '*.md'],
    },
    install_requires=[
        'numpy',
        'scipy>=1.8',
        'scikit-learn',
        'toolz',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Maximum entropy, perceptron and naive Bayes event models in Python',
    long_description=long_description,
    long_description_content_type="text/markdown",
    license='BSD',
    keywords='maximum-entropy maxent log-linear GIS generalized-iterative-scaling perceptron naive-bayes classifier scikit-learn sklearn',
    python_requires=">=3.8",
    classifiers=['Development Status :: 3 - Alpha',
                 'Intended Audience :: Developers',
                 'Intended Audience :: Science/Research',
                 'License :: OSI Approved :: BSD License',
                 'Operating System :: OS Independent',
                 'Programming Language :: Python :: 3',
                 'Topic :: Software Development',
                 'Topic :: Scientific/Engineering']
)
