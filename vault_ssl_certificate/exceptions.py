# -*- coding: utf-8 -*-

class VaultCertificateError(Exception):
    """Base Error class."""


class MalformedRequest(VaultCertificateError, ValueError):
    CUSTOM_ERROR_MESSAGE = "Invalid {}: {}"

    def __init__(self, field, reason):
        super(MalformedRequest, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(field, reason))
        self._field = field
        self._reason = reason

    @property
    def field(self):
        return self._field

    @property
    def reason(self):
        return self._reason


class IssuanceError(VaultCertificateError):
    CUSTOM_ERROR_MESSAGE = "Certificate issuance for {} failed with exit status {}: {}"

    def __init__(self, service_name, command, returncode, stderr):
        super(IssuanceError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(service_name,
                                                                             returncode,
                                                                             stderr.strip()))
        self._service_name = service_name
        self._command = command
        self._returncode = returncode
        self._stderr = stderr

    @property
    def service_name(self):
        return self._service_name

    @property
    def command(self):
        return self._command

    @property
    def returncode(self):
        return self._returncode

    @property
    def stderr(self):
        return self._stderr


class RotationScheduleError(VaultCertificateError):
    CUSTOM_ERROR_MESSAGE = "Rotation job {} could not be registered: {}"

    def __init__(self, job_name, error):
        super(RotationScheduleError, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(job_name,
                                                                                     str(error)))
        self._job_name = job_name
        self._error = error

    @property
    def job_name(self):
        return self._job_name

    @property
    def error(self):
        return self._error
