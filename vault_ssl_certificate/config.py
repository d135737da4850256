# -*- coding: utf-8 -*-
"""Settings from the environment and certificate requests from JSON.

A requests file maps service names to certificate parameters::

    {
        "test-service": {
            "host": "host.example.com",   # required
            "directory": "/etc/ssl/test", # required, absolute
            "domain": "example.com",      # defaults to host minus first label
            "aliases": ["1.2.3.4", "host2.example.com"],
            "lease": "168h",
            "vault_addr": "https://vault.example.com:8200"
        }
    }
"""

import json
import os
from dataclasses import dataclass

from .auth_token import DEFAULT_AUTH_BACKEND, DEFAULT_VAULT_ADDR
from .certificate import DEFAULT_TOOL, CertificateRequest
from .exceptions import MalformedRequest
from .schedule import DEFAULT_CRON_DIR, DEFAULT_CRON_USER

REQUEST_KEYS = {"host", "directory", "domain", "aliases", "lease", "vault_addr"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    vault_addr: str = DEFAULT_VAULT_ADDR
    auth_backend: str = DEFAULT_AUTH_BACKEND
    ca_cert: str = None
    tool: str = DEFAULT_TOOL
    cron_dir: str = DEFAULT_CRON_DIR
    cron_user: str = DEFAULT_CRON_USER
    mailto: str = None
    san_prefixed: bool = True

    @classmethod
    def from_environ(cls, environ=None):
        if environ is None:
            environ = os.environ
        return cls(vault_addr=environ.get("VAULT_ADDR", DEFAULT_VAULT_ADDR),
                   auth_backend=environ.get("VAULT_AUTH_BACKEND", DEFAULT_AUTH_BACKEND),
                   ca_cert=environ.get("VAULT_CACERT") or None,
                   tool=environ.get("DEPLOY_SSL_CERTIFICATE", DEFAULT_TOOL),
                   cron_dir=environ.get("VAULT_SSL_CRON_DIR", DEFAULT_CRON_DIR),
                   cron_user=environ.get("VAULT_SSL_CRON_USER", DEFAULT_CRON_USER),
                   mailto=environ.get("VAULT_SSL_MAILTO"),
                   san_prefixed=environ.get("VAULT_SSL_SAN_PREFIXED",
                                            "true").lower() not in FALSE_VALUES)

    @property
    def verify(self):
        """TLS verification argument for requests."""
        return self.ca_cert if self.ca_cert else True

    def auth_client_kwargs(self):
        return {"vault_addr": self.vault_addr,
                "auth_backend": self.auth_backend,
                "verify": self.verify}


def parse_certificate_requests(document):
    """Turns a decoded requests document into ``CertificateRequest`` objects.

    Returns:
        list: Requests sorted by service name.
    """
    if not isinstance(document, dict):
        raise MalformedRequest("requests", "document must be an object keyed by service name")

    cert_requests = []
    for service_name in sorted(document):
        params = document[service_name]
        if not isinstance(params, dict):
            raise MalformedRequest(service_name, "parameters must be an object")
        unknown = set(params) - REQUEST_KEYS
        if unknown:
            raise MalformedRequest(service_name, f"unknown keys {sorted(unknown)}")
        kwargs = dict(params)
        if "aliases" in kwargs and isinstance(kwargs["aliases"], list):
            kwargs["aliases"] = tuple(kwargs["aliases"])
        if "host" not in kwargs:
            raise MalformedRequest("host", f"missing for {service_name}")
        if "directory" not in kwargs:
            raise MalformedRequest("directory", f"missing for {service_name}")
        cert_requests.append(CertificateRequest(service_name=service_name, **kwargs))
    return cert_requests


def load_certificate_requests(path):
    with open(path, "r", encoding="utf-8") as fh:
        try:
            document = json.load(fh)
        except json.decoder.JSONDecodeError as e:
            raise MalformedRequest(path, f"not valid JSON: {e}") from None
    return parse_certificate_requests(document)
