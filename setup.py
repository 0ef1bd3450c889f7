"""
Setup script for authz-identity.
"""

from setuptools import setup, find_packages

setup(
    name="authz-identity",
    version="0.1.0",
    description="Authorization identity lookups for LDAP connections",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "ldap3>=2.9",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
