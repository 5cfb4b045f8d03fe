from setuptools import setup, find_packages


setup(
    name="igatool",
    version="0.1",
    packages=find_packages(),
    description="Extract and build IGA0 game-asset archives.",
    author="vercingetorx",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "igatool=igatool.cli:main",
        ]
    },
)
