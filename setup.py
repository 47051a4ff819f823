"""
Packaging for chissoku. Install with `pip install -e .[test]` to run the tests alongside the sources.

The `chissoku` console script reads the UD-CO2S sensor and sends its samples to the chosen outputters.
"""

from setuptools import setup

setup(
    name='chissoku',
    version='0.1.0',
    description='Reads CO2, humidity and temperature from an I-O DATA UD-CO2S sensor and publishes the samples.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['chissoku', 'chissoku.conduit', 'chissoku.config', 'chissoku.output',
              'chissoku.protocol', 'chissoku.support'],
    package_data={'chissoku.config': ['*.cfg']},
    python_requires='>=3.8',
    install_requires=[
        'pyserial>=3.5',
        'configobj>=5.0',
        'typer>=0.9',
        'paho-mqtt>=2.0',
        'prometheus-client>=0.20',
    ],
    extras_require={
        'test': [
            'pytest',
            'PyHamcrest',
            'timeout-decorator',
        ],
    },
    entry_points={
        'console_scripts': [
            'chissoku=chissoku.cli:main',
        ],
    },
    zip_safe=False,
)
