import setuptools

setuptools.setup(
    name='precise-date',
    version='0.1',
    description='Nanosecond precision dates on top of millisecond wall-clock dates.',
    packages=setuptools.find_packages(include=['precise_date', 'precise_date.*']),
    python_requires='>=3.11,<4',
    install_requires=[
        'absl-py>=2.1.0,<3',
        'jsonschema>=4.23.0,<5',
    ],
    extras_require={
        'test': [
            'pytest>=8.0.0,<9',
        ],
    },
)
