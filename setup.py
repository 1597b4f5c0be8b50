import re

import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

# Read the version without importing the package (dependencies may not be installed yet)
with open("pyfibernet/__init__.py", "r") as fh:
    version_tuple = re.search(r"^version_tuple = \((\d+), (\d+), (\d+)\)", fh.read(), re.M).groups()

setuptools.setup(
    name="pyfibernet",
    version=".".join(version_tuple),
    author="FiberNet",
    description="Status and device-management core for an ISP support backend: outage status cache and GenieACS telemetry",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["*.tests", "*.tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        'requests',
        'python-dotenv',
        'beautifulsoup4',
        'python-dateutil',
        'pydantic>=2.0',
        'pydantic-settings>=2.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
