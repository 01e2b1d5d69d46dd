#!/usr/bin/env python
# -*- coding: utf-8 -*-
from setuptools import find_packages, setup

with open('README.md', encoding='utf8') as readme_file:
    readme = readme_file.read()

with open('gopixel/VERSION', encoding='utf8') as version_file:
    version = version_file.read().strip()


setup(
    name='gopixel',
    version=version,
    description="Telemetry pixel: buffers behavioral events and ships them in batches "
                "without blocking the host.",
    long_description=readme,
    long_description_content_type="text/markdown",
    author="GoPixel",
    author_email='dev@gopixel.io',
    packages=find_packages(include=['gopixel', 'gopixel.*']),
    package_data={'gopixel': ['VERSION']},
    entry_points={
        'console_scripts': [
            'gopixel=gopixel.cli:cli'
        ]
    },
    include_package_data=True,
    install_requires=[
        'click>=8.0',
        'httpx>=0.24',
        'pydantic>=2.0',
        'rich>=12.0',
        'typer>=0.9',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    python_requires=">=3.9",
    license="MIT license",
    zip_safe=False,
    keywords='gopixel telemetry tracking',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Natural Language :: English',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ]
)
