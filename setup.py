#!/usr/bin/env python

# Todo list to prepare a release:
#  - run: pytest tests
#  - edit deepmock/version.py: check/set version
#  - edit ChangeLog: set release date
#  - git tag deepmock-x.y
#  - python -m build && twine upload dist/*
#
# After the release:
#  - edit deepmock/version.py: set version to n+1
#  - edit ChangeLog: add a new empty section for version n+1

from importlib.util import module_from_spec, spec_from_file_location
from os import path

from setuptools import setup

CLASSIFIERS = [
    'Intended Audience :: Developers',
    'Development Status :: 4 - Beta',
    'License :: OSI Approved :: Apache Software License',
    'Operating System :: OS Independent',
    'Natural Language :: English',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Software Development :: Testing :: Mocking',
]

MODULES = (
    "deepmock",
    "deepmock.core",
    "deepmock.core.loader",
    "deepmock.core.transformers",
)


def load_version():
    spec = spec_from_file_location("version", path.join("deepmock", "version.py"))
    version = module_from_spec(spec)
    spec.loader.exec_module(version)
    return version


def main():
    deepmock = load_version()
    PACKAGES = {}
    for name in MODULES:
        PACKAGES[name] = name.replace(".", "/")

    with open('README.rst') as fp:
        long_description = fp.read()
    with open('ChangeLog') as fp:
        long_description += fp.read()

    install_options = {
        "name": deepmock.PACKAGE,
        "version": deepmock.VERSION,
        "url": deepmock.WEBSITE,
        "download_url": deepmock.WEBSITE,
        "author": "deepmock developers",
        "description": "Load-time interception and object synthesis for test doubles",
        "long_description": long_description,
        "classifiers": CLASSIFIERS,
        "license": deepmock.LICENSE,
        "packages": list(PACKAGES.keys()),
        "package_dir": PACKAGES,
        "python_requires": ">=3.10",
        "install_requires": ['tomli>=1.1; python_version < "3.11"'],
        "extras_require": {"test": ["pytest>=7"]},
    }
    setup(**install_options)


if __name__ == "__main__":
    main()
