"""
Runtime configuration, read from environment variables.

    settings = Settings.from_env()
    client = ProxmoxClient.from_settings(settings)

Every field has a default so the gateway starts with an empty environment;
an empty PROXMOX_TOKEN just means every upstream call comes back 401.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

_TRUE = {"1", "true", "yes", "on"}


def _flag(environ: Mapping[str, str], key: str, default: bool = False) -> bool:
    value = environ.get(key)
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE


def _number(environ: Mapping[str, str], key: str, default, cast):
    value = environ.get(key)
    if value is None or value == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{key} must be a {cast.__name__}, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    """Gateway settings. Build with Settings.from_env() outside of tests."""

    host: str = "0.0.0.0"
    port: int = 3000
    https_port: int = 3443
    enable_https: bool = False
    ssl_cert_path: str = ""
    ssl_key_path: str = ""

    proxmox_host: str = "https://localhost:8006"
    proxmox_token: str = ""
    proxmox_node: str = "pve"
    proxmox_timeout: float = 10.0
    # Proxmox ships a self-signed certificate; verification is opt-in.
    proxmox_verify_tls: bool = False

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("HOST") or cls.host,
            port=_number(env, "PORT", cls.port, int),
            https_port=_number(env, "HTTPS_PORT", cls.https_port, int),
            enable_https=_flag(env, "ENABLE_HTTPS"),
            ssl_cert_path=env.get("SSL_CERT_PATH", ""),
            ssl_key_path=env.get("SSL_KEY_PATH", ""),
            proxmox_host=env.get("PROXMOX_HOST") or cls.proxmox_host,
            proxmox_token=env.get("PROXMOX_TOKEN", ""),
            proxmox_node=env.get("PROXMOX_NODE") or cls.proxmox_node,
            proxmox_timeout=_number(env, "PROXMOX_TIMEOUT", cls.proxmox_timeout, float),
            proxmox_verify_tls=_flag(env, "PROXMOX_VERIFY_TLS"),
            log_level=(env.get("LOG_LEVEL") or cls.log_level).upper(),
        )

    @property
    def https_requested(self) -> bool:
        """True when HTTPS is enabled and both certificate paths are set."""
        return self.enable_https and bool(self.ssl_cert_path) and bool(self.ssl_key_path)
