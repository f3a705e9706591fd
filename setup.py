"""setup.py: setuptools control."""

from setuptools import setup, find_packages

__version__ = '0.1.0'

with open('README.md', 'r', encoding='utf-8') as readme:
    long_description = readme.read()

setup(
    name='uniswap-bootstrap',
    packages=find_packages(exclude=("tests", "tests.*")),
    package_data={'uniswap_bootstrap': ['assets/*.abi', 'assets/uniswap-v3/*.abi']},
    version=__version__,
    description='Bootstrap a Uniswap V3 pool with two fresh tokens, add liquidity and make a test swap',
    long_description=long_description,
    long_description_content_type='text/markdown',
    install_requires=[
        'web3>=7.0.0',
        'eth-account>=0.13.0',
        'eth-typing>=4.0.0',
        'hexbytes>=1.2.0',
        'requests>=2.26.0',
        'click>=8.0.0',
        'python-dotenv>=1.0.0',
        'typing_extensions>=4.0.0',
    ],
    extras_require={
        'test': ['pytest>=7.0.0'],
    },
    entry_points={
        'console_scripts': ['uniswap-bootstrap=uniswap_bootstrap.cli:main'],
    },
    python_requires='>=3.8',
    zip_safe=False,
    license='GPL-3',
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
    ]
)
