from setuptools import setup, find_packages

setup(
    name="aurum",
    version="0.1.0",
    description="AUR helper: resolve, build, cache and install packages in tiers.",
    author="Seu Nome",
    license="GPL-3.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "rich>=13.0.0",
        "requests>=2.28.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "aurum=aurum.modules.cli:main",
        ],
    },
)
