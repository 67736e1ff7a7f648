import os

from setuptools import setup, find_packages

with open(os.path.join(os.path.dirname(__file__), "readme.md"), "r") as fh:
    long_description = fh.read()

setup(
    name='bikerental',
    version='1.0.0',
    license='MIT',
    description='A bike rental api server',
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires='>=3.8',
    install_requires=[
        'aiohttp',
        'aiohttp-cors',
        'aiohttp-apispec',
        'apispec',
        'marshmallow>=3.13,<4',
        'marshmallow-jsonschema',
        'tortoise-orm',
        'shapely',
        'sentry-sdk',
        'uvloop',
        'aiomonitor',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-aiohttp',
            'pytest-asyncio',
            'faker',
        ],
    },
    entry_points={
        'console_scripts': ['bikerental=bikerental.cli:run'],
    },
)
