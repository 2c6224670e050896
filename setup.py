from setuptools import setup, find_packages

setup(
    name="franchiser-miner",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "web3>=7.0.0",
        "requests>=2.31.0",
        "python-dotenv>=1.0.0",
        "eth-account>=0.13.0",
        "click>=8.1.0",
        "rich>=13.0.0",
        "schedule>=1.2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "franchiser=franchiser_miner.cli:main",
        ],
    },
    python_requires=">=3.10",
)
