# -*- coding: utf-8 -*-
"""Issue a certificate now and keep it rotated.

For each ``CertificateRequest`` the manager

1. builds the issuing tool command,
2. runs it once, synchronously, under the destination lock,
3. registers a cron job re-running the same command for the lease period.

A failed first issuance still registers the rotation job, a later run may
succeed once the policy or connectivity problem is fixed, and then the
failure is raised to the caller.
"""

import logging
import os
import subprocess

from .certificate import DEFAULT_TOOL, LEASE_PATTERN, SanFormat, build_issuance_command
from .exceptions import IssuanceError, MalformedRequest, RotationScheduleError
from .locking import DestinationLock
from .schedule import CronJobRegistry

CERT_FILE_MODE = 0o444
KEY_FILE_MODE = 0o400


class CertificateLifecycleManager:
    """Drives issuance and rotation of host certificates.

    Args:
        tool (str): Path of the ``deploy-ssl-certificate`` executable.
        registry (CronJobRegistry, optional): Where rotation jobs are installed.
        san_format (SanFormat, optional): Alternative name rendering for the tool.
    """

    def __init__(self, tool=DEFAULT_TOOL, registry=None, san_format=None):
        self._tool = tool
        self._registry = registry if registry is not None else CronJobRegistry()
        self._san_format = san_format if san_format is not None else SanFormat()

    @property
    def tool(self):
        return self._tool

    @property
    def registry(self):
        return self._registry

    @classmethod
    def from_settings(cls, settings):
        return cls(tool=settings.tool,
                   registry=CronJobRegistry(cron_dir=settings.cron_dir,
                                            user=settings.cron_user,
                                            mailto=settings.mailto),
                   san_format=SanFormat(prefixed=settings.san_prefixed))

    def build_issuance_command(self, request):
        return build_issuance_command(request, tool=self._tool, san_format=self._san_format)

    def issue_now(self, command):
        """Runs ``command`` once and fixes the modes of the written pair.

        Runs under the ambient environment, without a shell.

        Returns:
            int: The tool's exit status, always 0 as failures raise.

        Raises:
            IssuanceError: The tool could not be run, exited non-zero or did
                not write both files.
        """
        log = logging.getLogger(__name__)
        log.info(f"Issuing certificate for {command.service_name}: {command}")

        try:
            with DestinationLock(command.lock_file):
                result = subprocess.run(list(command.argv),
                                        stdout=subprocess.PIPE,
                                        stderr=subprocess.PIPE,
                                        universal_newlines=True,
                                        check=False)
                if result.returncode != 0:
                    raise IssuanceError(command.service_name, str(command),
                                        result.returncode, result.stderr)

                for path, mode in ((command.cert_file, CERT_FILE_MODE),
                                   (command.key_file, KEY_FILE_MODE)):
                    if not os.path.isfile(path):
                        raise IssuanceError(command.service_name, str(command),
                                            result.returncode, f"{path} was not written")
                    os.chmod(path, mode)
        except OSError as e:
            log.exception(f"While issuing certificate for {command.service_name}")
            raise IssuanceError(command.service_name, str(command), None, str(e)) from e

        log.info(f"Issued {command.cert_file} and {command.key_file}")
        return result.returncode

    def schedule_rotation(self, command, lease, vault_addr=None):
        """Registers the recurring job re-running ``command``.

        Args:
            command (IssuanceCommand): The command used for issuance.
            lease (str): Hours duration such as ``168h``, sets the period.
            vault_addr (str, optional): Exported as ``VAULT_ADDR`` to the job only.

        Returns:
            CronJob: The installed job.
        """
        if not isinstance(lease, str) or not LEASE_PATTERN.fullmatch(lease):
            raise MalformedRequest("lease", f"{lease!r} is not an hours duration such as 168h")

        job = self._registry.job(command.service_name,
                                 str(command),
                                 command.lock_file,
                                 int(lease[:-1]),
                                 vault_addr=vault_addr)
        return self._registry.register(job)

    def deploy(self, request):
        """Issues the certificate for ``request`` and keeps it rotated.

        Returns:
            CronJob: The rotation job, registered even when issuance fails.

        Raises:
            IssuanceError: After the job is registered, if the first issuance failed.
            RotationScheduleError: The job could not be registered, chained to any
                issuance failure.
        """
        command = self.build_issuance_command(request)

        issuance_error = None
        try:
            self.issue_now(command)
        except IssuanceError as e:
            issuance_error = e
            logging.getLogger(__name__).error(f"{e}, registering the rotation job anyway")

        try:
            job = self.schedule_rotation(command, request.lease, vault_addr=request.vault_addr)
        except RotationScheduleError as e:
            if issuance_error is not None:
                raise e from issuance_error
            raise

        if issuance_error is not None:
            raise issuance_error
        return job
