# -*- coding: utf-8 -*-
"""Certificate requests and the ``deploy-ssl-certificate`` command line.

The issuing tool accepts a role (the PKI domain), the common name, optional
DNS and IP subject alternative names and a lease, and writes the PEM
certificate and key to the given paths::

    deploy-ssl-certificate --role example.com --common_name host.example.com \\
        --alt_names 'DNS:host2.example.com, DNS:host3.example.com' \\
        --ip_sans 'IP:1.2.3.4, IP:5.6.7.8' --lease 168h \\
        --certfile /tmp/host.example.com.cert.pem \\
        --keyfile /tmp/host.example.com.key.pem

Commands are kept as argument lists and only flattened with shell quoting
where a single string is needed (the cron job line).
"""

import os
import re
import shlex
from dataclasses import dataclass, field

from .exceptions import MalformedRequest

DEFAULT_TOOL = "/usr/local/bin/deploy-ssl-certificate"
DEFAULT_LEASE = "168h"

# patterns are used with fullmatch
IPV4_PATTERN = re.compile(r"\d{1,3}(\.\d{1,3}){3}")
DNS_LABEL = r"[A-Za-z0-9_]([A-Za-z0-9_-]{0,61}[A-Za-z0-9_])?"
HOST_PATTERN = re.compile(rf"{DNS_LABEL}(\.{DNS_LABEL})*")
LEASE_PATTERN = re.compile(r"[1-9][0-9]*h")


class SanFormat:
    """How subject alternative names are rendered for the issuing tool.

    The tool shipped with this package expects typed entries, ``DNS:name`` and
    ``IP:address``. Older releases took bare names, use ``prefixed=False``
    for those.
    """

    SEPARATOR = ", "
    DNS_PREFIX = "DNS:"
    IP_PREFIX = "IP:"

    def __init__(self, prefixed=True):
        self._prefixed = prefixed

    @property
    def prefixed(self):
        return self._prefixed

    def dns(self, names):
        return self._join(self.DNS_PREFIX, names)

    def ip(self, addresses):
        return self._join(self.IP_PREFIX, addresses)

    def _join(self, prefix, entries):
        if not self._prefixed:
            prefix = ""
        return self.SEPARATOR.join(f"{prefix}{entry}" for entry in entries)


def partition_aliases(aliases):
    """Splits aliases into DNS names and IPv4 addresses.

    Relative order is kept in both groups and duplicates are left alone.

    Returns:
        tuple: ``(dns_names, ip_addresses)`` as lists.
    """
    dns_names = []
    ip_addresses = []
    for alias in aliases:
        if IPV4_PATTERN.fullmatch(alias):
            ip_addresses.append(alias)
        else:
            dns_names.append(alias)
    return dns_names, ip_addresses


@dataclass(frozen=True)
class CertificateRequest:
    """One desired certificate/key pair.

    ``domain`` defaults to ``host`` without its first label and ``directory``
    loses any trailing separator. Instances are validated on construction
    and immutable afterwards.
    """

    service_name: str
    host: str
    directory: str
    domain: str = None
    aliases: tuple = field(default_factory=tuple)
    lease: str = DEFAULT_LEASE
    vault_addr: str = None

    def __post_init__(self):
        if not isinstance(self.service_name, str) or not self.service_name:
            raise MalformedRequest("service_name", "must be a non-empty string")
        if not isinstance(self.host, str) or not self.host.strip():
            raise MalformedRequest("host", "must be a non-empty string")
        # host names the files written into directory
        if len(self.host) > 253 or not HOST_PATTERN.fullmatch(self.host):
            raise MalformedRequest("host", f"{self.host!r} is not a DNS name")

        domain = self.domain
        if domain is None:
            if "." not in self.host:
                raise MalformedRequest("domain",
                                       f"cannot be derived from single label host {self.host}")
            domain = self.host.split(".", 1)[1]
        if not isinstance(domain, str) or not domain:
            raise MalformedRequest("domain", "must be a non-empty string")

        if isinstance(self.aliases, str):
            raise MalformedRequest("aliases", "must be a sequence of strings, not a string")
        aliases = tuple(self.aliases or ())
        for alias in aliases:
            if not isinstance(alias, str) or not alias:
                raise MalformedRequest("aliases", f"{alias!r} is not a non-empty string")

        if not isinstance(self.directory, str) or not self.directory.startswith("/"):
            raise MalformedRequest("directory", f"{self.directory!r} is not an absolute path")
        directory = self.directory.rstrip("/") or "/"

        if not isinstance(self.lease, str) or not LEASE_PATTERN.fullmatch(self.lease):
            raise MalformedRequest("lease", f"{self.lease!r} is not an hours duration such as 168h")

        # frozen, so normalised values go in through object.__setattr__
        object.__setattr__(self, "domain", domain)
        object.__setattr__(self, "aliases", aliases)
        object.__setattr__(self, "directory", directory)

    @property
    def cert_file(self):
        return os.path.join(self.directory, f"{self.host}.cert.pem")

    @property
    def key_file(self):
        return os.path.join(self.directory, f"{self.host}.key.pem")

    @property
    def lock_file(self):
        return os.path.join(self.directory, f".{self.host}.lock")

    @property
    def lease_hours(self):
        return int(self.lease[:-1])


@dataclass(frozen=True)
class IssuanceCommand:
    """A ready to run issuing tool invocation for one request."""

    service_name: str
    argv: tuple
    cert_file: str
    key_file: str
    lock_file: str

    def __str__(self):
        return shlex.join(self.argv)


def build_issuance_command(request, tool=DEFAULT_TOOL, san_format=None):
    """Builds the issuing tool command for ``request``.

    The alternative name arguments are only present when the matching alias
    group is non-empty.
    """
    if san_format is None:
        san_format = SanFormat()

    dns_names, ip_addresses = partition_aliases(request.aliases)

    argv = [tool,
            "--role", request.domain,
            "--common_name", request.host]
    if dns_names:
        argv += ["--alt_names", san_format.dns(dns_names)]
    if ip_addresses:
        argv += ["--ip_sans", san_format.ip(ip_addresses)]
    argv += ["--lease", request.lease,
             "--certfile", request.cert_file,
             "--keyfile", request.key_file]

    return IssuanceCommand(service_name=request.service_name,
                           argv=tuple(argv),
                           cert_file=request.cert_file,
                           key_file=request.key_file,
                           lock_file=request.lock_file)
