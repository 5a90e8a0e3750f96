from setuptools import find_packages, setup


def read_requirements():
    with open("requirements.txt") as f:
        return [line for line in f.read().splitlines() if line and not line.startswith("#")]


setup(
    name="switchrun",
    version="0.1.0",
    description="A query-driven launcher catalog with persistent usage history",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.12",
    install_requires=read_requirements(),
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": ["switchrun=switchrun.cli:app"],
    },
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
)
