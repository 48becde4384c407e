from __future__ import annotations

import pytest

from proxmox_mcp.config import Settings


def test_defaults_from_empty_environment():
    settings = Settings.from_env({})

    assert settings == Settings()
    assert settings.port == 3000
    assert settings.https_port == 3443
    assert settings.proxmox_node == "pve"
    assert settings.proxmox_timeout == 10.0
    assert settings.proxmox_verify_tls is False
    assert settings.https_requested is False


def test_reads_environment():
    settings = Settings.from_env({
        "PORT": "8080",
        "HTTPS_PORT": "8443",
        "PROXMOX_HOST": "https://pve.lan:8006",
        "PROXMOX_TOKEN": "root@pam!mcp=abc",
        "PROXMOX_NODE": "node2",
        "PROXMOX_TIMEOUT": "2.5",
        "PROXMOX_VERIFY_TLS": "true",
        "ENABLE_HTTPS": "true",
        "SSL_CERT_PATH": "/certs/cert.pem",
        "SSL_KEY_PATH": "/certs/key.pem",
        "LOG_LEVEL": "debug",
    })

    assert settings.port == 8080
    assert settings.https_port == 8443
    assert settings.proxmox_host == "https://pve.lan:8006"
    assert settings.proxmox_token == "root@pam!mcp=abc"
    assert settings.proxmox_node == "node2"
    assert settings.proxmox_timeout == 2.5
    assert settings.proxmox_verify_tls is True
    assert settings.https_requested is True
    assert settings.log_level == "DEBUG"


def test_https_needs_both_paths():
    settings = Settings.from_env({"ENABLE_HTTPS": "true", "SSL_CERT_PATH": "/certs/cert.pem"})

    assert settings.enable_https is True
    assert settings.https_requested is False


def test_only_true_enables_flags():
    assert Settings.from_env({"ENABLE_HTTPS": "false"}).enable_https is False
    assert Settings.from_env({"ENABLE_HTTPS": "TRUE"}).enable_https is True


def test_bad_number_names_the_variable():
    with pytest.raises(ValueError, match="PORT"):
        Settings.from_env({"PORT": "eighty"})
