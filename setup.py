import os

from setuptools import find_packages, setup


# read the version from the VERSION file
def get_version():
    with open(os.path.join(os.path.dirname(__file__), "VERSION"), "r") as version_file:
        return version_file.read().strip()


# Set the version in the ssm_document/version.py file
def set_version_constant(version: str):
    with open(os.path.join(os.path.dirname(__file__), "ssm_document", "version.py"), "w") as version_file:
        version_file.write(f'__version__ = "{version}"\n')


set_version_constant(get_version())

setup(
    name="ssm-document",
    version=get_version(),
    description="Stabilizing resource provider for AWS::SSM::Document",
    python_requires=">=3.10",
    packages=find_packages(include=["ssm_document", "ssm_document.*"]),
    install_requires=[
        "boto3>=1.26",
        "botocore>=1.29",
        "click>=7.1",
        "plux>=1.3",
        "PyYAML>=5.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
        "typehint": [
            "boto3-stubs[ssm]",
        ],
    },
    entry_points={
        "console_scripts": [
            "ssm-document = ssm_document.cli.main:main",
        ],
        "ssm_document.resource_providers": [
            "AWS::SSM::Document = ssm_document.resource_providers.aws_ssm_document_plugin:SSMDocumentProviderPlugin",
        ],
    },
)
