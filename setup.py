# Standard library imports ...
import pathlib
import re

# Third party library imports ...
from setuptools import setup

kwargs = {
    'name': 'jp2kit',
    'description': 'Controlled decode and encode of JPEG 2000 images',
    'long_description': open('README.md').read(),
    'long_description_content_type': 'text/markdown',
    'packages': ['jp2kit', 'jp2kit.lib'],
    'entry_points': {
        'console_scripts': [
            'jp2info=jp2kit.command_line:jp2info',
            'jp2recode=jp2kit.command_line:jp2recode',
        ],
    },
    'license': 'MIT',
    'python_requires': '>=3.8',
    'install_requires': ['numpy', 'packaging', 'setuptools'],
    'extras_require': {
        'test': ['pytest', 'scikit-image'],
    },
}

kwargs['classifiers'] = [
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: Implementation :: CPython",
    "License :: OSI Approved :: MIT License",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Operating System :: Microsoft :: Windows",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Information Technology",
    "Topic :: Multimedia :: Graphics",
    "Topic :: Software Development :: Libraries :: Python Modules"
]

# Get the version string.  Cannot do this by importing jp2kit!
p = pathlib.Path('jp2kit') / 'version.py'
contents = p.read_text()
pattern = r'''version\s=\s"(?P<version>\d*.\d*.\d*.*)"\s'''
match = re.search(pattern, contents)
kwargs['version'] = match.group('version')

setup(**kwargs)
