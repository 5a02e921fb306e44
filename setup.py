import os
from setuptools import setup

NAME = 'tide'


def getPackages(base):
    """
    Recursively find python packages.
    """
    packages = []

    for directory, _, files in os.walk(base):
        if '__init__.py' in files:
            packages.append(directory.replace(os.sep, '.'))

    return packages

packages = getPackages(NAME)


# If a twisted/plugins directory exists make sure we install the
# twisted.plugins packages.
if os.path.exists('twisted/plugins'):
    packages.append('twisted.plugins')


setup(
    name=NAME,
    version='0.1.0',
    packages=packages,
    license="Apache 2.0",
    install_requires=[
        'attrs',
        'constantly',
        'effect',
        'pyrsistent',
        'toolz',
        'treq',
        'twisted',
        'txeffect',
        'zope.interface',
    ],
    extras_require={
        'test': ['mock', 'pytest', 'testtools'],
    },
    entry_points={
        'console_scripts': ['tide-autoscale = tide.cli:main'],
    },
)

# Make Twisted regenerate the dropin.cache, if possible.  This is necessary
# because in a site-wide install, dropin.cache cannot be rewritten by
# normal users.
try:
    from twisted.plugin import IPlugin, getPlugins
except ImportError:
    pass
else:
    list(getPlugins(IPlugin))
