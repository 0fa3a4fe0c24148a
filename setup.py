# Copyright European Space Agency, 2013

from setuptools import setup, find_packages
import re

VERSIONFILE="ferromagnetic/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

setup(
    name = 'ferromagnetic',
    description = 'International Geomagnetic Reference Field (IGRF) main field and secular variation',
    long_description = open('README.rst').read(),
    version = verstr,
    license = 'ESCL - Type 1',
    classifiers=[
      'Development Status :: 4 - Beta',
      'Intended Audience :: Science/Research',
      'Natural Language :: English',
      'Programming Language :: Python :: 3',
      'Operating System :: OS Independent',
      'Topic :: Scientific/Engineering :: Physics',
      'Topic :: Software Development :: Libraries',
    ],
    packages = find_packages(),
    python_requires = '>=3.7',
    install_requires=['numpy>=1.16',
                      'astropy>=4.3', # datetime to decimal year
                      'pyerfa',
                      ],
    extras_require = {
        'test': ['pytest'],
    },
    package_data = {
        'ferromagnetic': ['data/*.txt'],
        'ferromagnetic.test': ['resources/*.txt'],
    },
)
