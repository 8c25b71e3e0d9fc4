from setuptools import setup

setup(
    name='declaro',
    version='0.1.0',
    packages=['declaro'],
    # # Uncomment to enable PEP-561 style type hinting and .pyi type hinting files.
    # package_data={
    #     # Conform to PEP-561
    #     'declaro': ['py.typed']
    # },
    python_requires='>=3.9',
    install_requires=['numpy'],
    extras_require={
        'test': ['pytest'],
    },
    license='',
    author='declaro team',
    author_email='',
    description='Declarative resource schemas with validation and polymorphic JSON materialization.'
)
