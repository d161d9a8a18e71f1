#!/usr/bin/env python
from setuptools import setup
setup(
    name='mimebatch',
    version='2.0',
    description='HTTP Request Batching through MIME multipart',
    author='Six Apart',
    author_email='python@sixapart.com',

    packages=['mimebatch'],
    provides=['mimebatch'],
    python_requires='>=3.8',
    install_requires=['httplib2>=0.20'],
    extras_require={'test': ['pytest']},
)
