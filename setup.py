#!/usr/bin/env python

from setuptools import setup

setup(
    name="xmakegen",
    version="0.2.0",
    packages=[
        "xmakegen",
        "xmakegen.details",
        "xmakegen.details.tools",
        "xmakegen.generators",
        "xmakegen.generators.eclipse_cdt",
        "xmakegen.generators.json",
        "xmakegen.generators.make",
        "xmakegen.generators.ninja",
    ],
    package_data={"xmakegen.details": ["toolchains.json"]},
    python_requires=">=3.9",
    install_requires=["colorama"],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["xmakegen = xmakegen.__main__:main"]},
)
