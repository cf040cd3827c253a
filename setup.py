# -*- coding: utf-8 -*-

"""setup.py"""

from setuptools import setup, find_namespace_packages


def read_content(filepath):
    with open(filepath) as fobj:
        return fobj.read()


classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: Implementation :: CPython",
]


def get_requirements(filename="requirements.txt"):
    """Read requirements from a requirements file, skipping empty lines and comments."""
    with open(filename) as f:
        reqs = f.read().splitlines()

    return [req for req in reqs if req.strip() and not req.startswith("#")]


setup(
    name="pubtools-dockerhub",
    version="0.1.0",
    description="Pubtools-dockerhub",
    long_description=read_content("README.rst"),
    long_description_content_type="text/x-rst",
    url="https://github.com/release-engineering/pubtools-dockerhub",
    classifiers=classifiers,
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["pubtools.*"]),
    data_files=[],
    python_requires=">=3.8",
    install_requires=get_requirements(),
    extras_require={"test": get_requirements("test-requirements.txt")},
    entry_points={
        "console_scripts": [
            "pubtools-dockerhub-push = pubtools._dockerhub.push_with_manifest:push_with_manifest_main",
            "pubtools-dockerhub-build = pubtools._dockerhub.build_image:build_image_main",
        ],
    },
)
