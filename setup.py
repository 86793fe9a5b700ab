"""A setuptools setup module for proto_ipld"""

# Standard
import os

# Third Party
from setuptools import setup

# Read the README to provide the long description
python_base = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(python_base, "README.md"), "r") as handle:
    long_description = handle.read()

# Read version from the env
version = os.environ.get("RELEASE_VERSION", "0.0.0.dev0")

# Read in the requirements
with open(os.path.join(python_base, "requirements.txt"), "r") as handle:
    requirements = handle.read().splitlines()
with open(os.path.join(python_base, "requirements_test.txt"), "r") as handle:
    test_requirements = handle.read().splitlines()

setup(
    name="proto-ipld",
    version=version,
    description="Bind python values and protobuf messages to IPLD schemas and encode them as DAG-JSON",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords=["ipld", "dag-json", "schema", "protobuf", "proto", "descriptor"],
    packages=["proto_ipld", "proto_ipld.model"],
    package_data={
        "proto_ipld": ["schema.lark"],
        "proto_ipld.model": ["person.proto", "descriptor.pb"],
    },
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={"test": test_requirements},
    entry_points={"console_scripts": ["proto-ipld=proto_ipld.cli:cli"]},
)
