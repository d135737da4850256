# -*- coding: utf-8 -*-
"""vault-ssl-certificate a module for issuing and rotating host certificates from Vault.

This module logs in to Vault with an application identity and drives the
deploy-ssl-certificate tool to issue a certificate now and keep it rotated
with a cron job.

"""

import setuptools
import re
from io import open

VERSIONFILE="vault_ssl_certificate/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setuptools.setup(
    name='vault_ssl_certificate',
    version=verstr,
    author="Mike Moore",
    author_email="z_z_zebra@yahoo.com",
    description="Issue host SSL certificates from a Vault PKI backend and keep them rotated",
    long_description_content_type="text/markdown",
    long_description=long_description,
    packages=setuptools.find_packages(),
    include_package_data=True,
    license="MIT",
    scripts=[],
    python_requires=">=3.8",
    install_requires=[
        "requests>=2.25,<3.0",
        "click>=8.0",
        "python-dateutil~=2.0",
        "filelock>=3.10",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "vault-ssl-certificate=vault_ssl_certificate.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
    ],

)
