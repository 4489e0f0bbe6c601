#!/usr/bin/env python3

import ast

import setuptools

with open('syncproc/__init__.py') as file:
    long_description = ast.get_docstring(ast.parse(file.read()))

setuptools.setup(
    name='syncproc',
    version='0.1.0',
    author='Mihail Georgiev',
    author_email='misho88@gmail.com',
    description='syncproc - blocking process calls and pipes on top of asyncio',
    long_description=long_description,
    long_description_content_type='text/plain',
    packages=setuptools.find_packages(exclude=['tests']),
    python_requires='>=3.10',
    install_requires=['funcpipes'],
    extras_require={'test': ['pytest']},
)
