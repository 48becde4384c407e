"""
Listener selection: HTTPS when the TLS material loads, HTTP otherwise.

The decision is made once at startup, before uvicorn is launched:

    plan = choose_listener(settings)
    uvicorn.run(app, **plan.uvicorn_options())
"""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from typing import Any, Callable

from proxmox_mcp.config import Settings
from proxmox_mcp.errors import ListenerSetupError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListenerPlan:
    """Where and how the HTTP server listens."""
    host: str
    port: int
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None

    @property
    def secure(self) -> bool:
        return self.ssl_certfile is not None

    @property
    def base_url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.host}:{self.port}"

    def uvicorn_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"host": self.host, "port": self.port}
        if self.secure:
            options["ssl_certfile"] = self.ssl_certfile
            options["ssl_keyfile"] = self.ssl_keyfile
        return options


def load_tls_material(certfile: str, keyfile: str) -> None:
    """
    Check that a certificate chain and key can be loaded together.

    Raises:
        ListenerSetupError: a file is missing, unreadable, or invalid.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(certfile, keyfile)
    except (OSError, ssl.SSLError) as e:
        raise ListenerSetupError(f"cannot load TLS material: {e}") from e


def choose_listener(
    settings: Settings,
    load: Callable[[str, str], None] = load_tls_material,
) -> ListenerPlan:
    """
    Pick the secure listener if it is requested and usable.

    Args:
        settings: Gateway settings.
        load: TLS material check; raises ListenerSetupError on failure.

    Returns:
        A plan on HTTPS_PORT with the certificate paths, or a plain
        HTTP plan on PORT.
    """
    plain = ListenerPlan(settings.host, settings.port)

    if not settings.https_requested:
        if settings.enable_https:
            logger.warning("ENABLE_HTTPS is set but SSL_CERT_PATH/SSL_KEY_PATH are missing; serving HTTP")
        return plain

    try:
        load(settings.ssl_cert_path, settings.ssl_key_path)
    except ListenerSetupError as e:
        logger.error(f"Failed to start HTTPS server: {e}")
        logger.info("Falling back to HTTP...")
        return plain

    return ListenerPlan(
        settings.host,
        settings.https_port,
        ssl_certfile=settings.ssl_cert_path,
        ssl_keyfile=settings.ssl_key_path,
    )
