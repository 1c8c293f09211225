"""
Setup script for Ather Stats
Run: pip install -e .   (then: ather-stats)
"""

from setuptools import find_namespace_packages, setup

setup(
    name='ather-stats',
    version='0.1.0',
    description='Ride dashboard for an Ather scooter ride log published as CSV',
    python_requires='>=3.9',
    py_modules=['app', 'constants', 'db', 'state'],
    packages=find_namespace_packages(include=['core', 'components']),
    install_requires=[
        'nicegui',
        'pandas',
        'numpy',
        'plotly',
        'requests',
        'polyline',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['ather-stats=app:main'],
    },
)
