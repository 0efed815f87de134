#!/usr/bin/env python

from setuptools import setup, find_packages
import os

long_description = open("README.rst").read()
install_requires = ['numpy>=1.18.5',
                    'quantities>=0.12.1',
                    'scipy>=1.4.0']
extras_require = {
    'test': ['pytest'],
}
extras_require["all"] = sum(extras_require.values(), [])

with open(os.path.join("nsxio", "version.py")) as fp:
    d = {}
    exec(fp.read(), d)
    nsxio_version = d['version']

setup(
    name="nsxio",
    version=nsxio_version,
    packages=find_packages(include=["nsxio", "nsxio.*"]),
    install_requires=install_requires,
    extras_require=extras_require,
    author="nsxio authors and contributors",
    description="nsxio reads segmented Blackrock NSx continuous recordings "
                "in Python and detects spikes on the recovered signals",
    long_description=long_description,
    license="BSD-3-Clause",
    python_requires=">=3.9",
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: BSD License',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Scientific/Engineering']
)
