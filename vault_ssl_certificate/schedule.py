# -*- coding: utf-8 -*-
"""Rotation jobs as ``/etc/cron.d`` entries.

A rotation job re-runs exactly the command used for the first issuance. Its
period comes from the certificate lease and is never longer than the lease.
Failed runs are reported by cron itself (``MAILTO``), the previous pair
stays on disk until a later run succeeds.
"""

import hashlib
import logging
import os
import re
import shlex
import tempfile
from dataclasses import dataclass, replace

from dateutil.relativedelta import relativedelta

from .exceptions import RotationScheduleError

DEFAULT_CRON_DIR = "/etc/cron.d"
DEFAULT_CRON_USER = "root"
CRON_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"
JOB_NAME_PREFIX = "vault-ssl-certificate-"

WEEKLY = "0 0 * * 0"


def rotation_schedule(lease_hours):
    """Returns the cron expression used to renew a certificate leased for ``lease_hours``.

    Cron cannot express every period, so this rounds down to the nearest one it can:
    every N hours below a day, every N days below a week, weekly beyond that.
    """
    if lease_hours < 1:
        raise ValueError(f"Lease must be at least one hour, got {lease_hours}")
    period = relativedelta(hours=lease_hours)
    if period.days == 0:
        return f"0 */{period.hours} * * *"
    if period.days >= 7:
        return WEEKLY
    return f"0 0 */{period.days} * *"


def job_name(service_name):
    # run-parts ignores cron.d files with dots or other punctuation in the name
    safe_name = re.sub(r"[^A-Za-z0-9_-]", "_", service_name)
    if safe_name != service_name:
        # keep distinct service names on distinct files
        digest = hashlib.sha256(service_name.encode("utf-8")).hexdigest()[:8]
        safe_name = f"{safe_name}-{digest}"
    return JOB_NAME_PREFIX + safe_name


@dataclass(frozen=True)
class CronJob:
    """A registered, or ready to register, rotation job."""

    name: str
    schedule: str
    command: str
    lock_file: str
    user: str = DEFAULT_CRON_USER
    vault_addr: str = None
    mailto: str = None
    path: str = None
    service_name: str = None

    @property
    def line(self):
        parts = []
        if self.vault_addr:
            parts.append(f"env VAULT_ADDR={shlex.quote(self.vault_addr)}")
        parts.append(f"flock {shlex.quote(self.lock_file)}")
        parts.append(self.command)
        # cron turns an unescaped % into a newline
        invocation = " ".join(parts).replace("%", "\\%")
        return f"{self.schedule} {self.user} {invocation}"

    def render(self):
        lines = [f"# Rotate SSL certificate for {self.service_name or self.name}",
                 "SHELL=/bin/sh",
                 f"PATH={CRON_PATH}"]
        if self.mailto is not None:
            lines.append(f"MAILTO={self.mailto}")
        lines.append(self.line)
        return "\n".join(lines) + "\n"


class CronJobRegistry:
    """Writes rotation jobs into a cron.d style directory.

    Args:
        cron_dir (str): Directory scanned by cron, ``/etc/cron.d`` by default.
        user (str): Account the job runs as.
        mailto (str, optional): Where cron reports failed runs.
    """

    def __init__(self, cron_dir=DEFAULT_CRON_DIR, user=DEFAULT_CRON_USER, mailto=None):
        self._cron_dir = cron_dir
        self._user = user
        self._mailto = mailto

    @property
    def cron_dir(self):
        return self._cron_dir

    def job(self, service_name, command, lock_file, lease_hours, vault_addr=None):
        return CronJob(name=job_name(service_name),
                       service_name=service_name,
                       schedule=rotation_schedule(lease_hours),
                       command=command,
                       lock_file=lock_file,
                       user=self._user,
                       vault_addr=vault_addr,
                       mailto=self._mailto)

    def register(self, job):
        """Installs ``job``, replacing any previous version atomically.

        Returns:
            CronJob: ``job`` with ``path`` set to the installed file.
        """
        path = os.path.join(self._cron_dir, job.name)
        content = job.render()

        try:
            if os.path.exists(path):
                with open(path, "r", encoding="utf-8") as fh:
                    if fh.read() == content:
                        logging.getLogger(__name__).debug(f"Rotation job {path} unchanged")
                        return replace(job, path=path)

            fd, tmp_path = tempfile.mkstemp(prefix=f".{job.name}.", dir=self._cron_dir)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(content)
                os.chmod(tmp_path, 0o644)
                os.replace(tmp_path, path)
            except BaseException:
                os.unlink(tmp_path)
                raise
        except OSError as e:
            raise RotationScheduleError(job.name, e) from e

        logging.getLogger(__name__).info(f"Registered rotation job {path}: {job.schedule}")
        return replace(job, path=path)
