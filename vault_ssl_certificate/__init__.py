# -*- coding: utf-8 -*-
"""vault_ssl_certificate

Log in to Vault with an application identity, and issue host SSL certificates
from its PKI backend, keeping them rotated with a cron job.

"""

from __future__ import absolute_import

from vault_ssl_certificate.auth_token import AuthTokenClient, \
    AuthFailure, \
    AuthFailureReason, \
    Identity, \
    Token, \
    vault_token
from vault_ssl_certificate.certificate import CertificateRequest, \
    IssuanceCommand, \
    SanFormat, \
    build_issuance_command, \
    partition_aliases
from vault_ssl_certificate.config import Settings, load_certificate_requests
from vault_ssl_certificate.exceptions import VaultCertificateError, \
    MalformedRequest, \
    IssuanceError, \
    RotationScheduleError
from vault_ssl_certificate.lifecycle import CertificateLifecycleManager
from vault_ssl_certificate.locking import DestinationLock
from vault_ssl_certificate.schedule import CronJob, CronJobRegistry, rotation_schedule
from ._version import __version__

__all__ = ["__version__",
           "AuthTokenClient",
           "AuthFailure",
           "AuthFailureReason",
           "Identity",
           "Token",
           "vault_token",
           "CertificateRequest",
           "IssuanceCommand",
           "SanFormat",
           "build_issuance_command",
           "partition_aliases",
           "Settings",
           "load_certificate_requests",
           "VaultCertificateError",
           "MalformedRequest",
           "IssuanceError",
           "RotationScheduleError",
           "CertificateLifecycleManager",
           "DestinationLock",
           "CronJob",
           "CronJobRegistry",
           "rotation_schedule"]
