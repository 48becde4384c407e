"""
Run Server — start the Proxmox MCP gateway.

It:
1. Reads settings from the environment (PORT, PROXMOX_HOST, PROXMOX_TOKEN, ...)
2. Builds the Starlette app (tools bound to one Proxmox API client)
3. Picks HTTPS if ENABLE_HTTPS is set and the certificate loads, else HTTP
4. Serves it with uvicorn

Usage:
    PROXMOX_HOST=https://pve.lan:8006 PROXMOX_TOKEN='root@pam!mcp=...' python run_server.py

    # Override the bind address / port
    python run_server.py --host 127.0.0.1 --port 8080

    # HTTPS with fallback to HTTP if the certificate can't be loaded
    ENABLE_HTTPS=true SSL_CERT_PATH=cert.pem SSL_KEY_PATH=key.pem python run_server.py
"""

from __future__ import annotations

import argparse
import dataclasses
import logging

import uvicorn

from proxmox_mcp.app import create_app
from proxmox_mcp.config import Settings
from proxmox_mcp.listener import choose_listener

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Serve Proxmox VE queries as MCP tools over SSE.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  PORT, HTTPS_PORT, HOST, ENABLE_HTTPS, SSL_CERT_PATH, SSL_KEY_PATH,
  PROXMOX_HOST, PROXMOX_TOKEN, PROXMOX_NODE, PROXMOX_TIMEOUT,
  PROXMOX_VERIFY_TLS, LOG_LEVEL
        """,
    )
    parser.add_argument("--host", type=str, default=None, help="Bind address (overrides HOST)")
    parser.add_argument("--port", "-p", type=int, default=None, help="HTTP port (overrides PORT)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")

    args = parser.parse_args()

    settings = Settings.from_env()
    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    level = logging.DEBUG if args.verbose else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    logger.info("Starting Proxmox MCP Server...")
    logger.info(f"Proxmox Host: {settings.proxmox_host} (node {settings.proxmox_node})")
    if not settings.proxmox_token:
        logger.warning("PROXMOX_TOKEN is empty; upstream calls will be rejected")

    # ── Choose listener ───────────────────────────────────
    plan = choose_listener(settings)
    logger.info(f"Server running on {plan.base_url}")
    logger.info(f"Health: {plan.base_url}/health")
    logger.info(f"SSE: {plan.base_url}/sse")

    # ── Serve ─────────────────────────────────────────────
    app = create_app(settings)
    uvicorn.run(app, log_level=logging.getLevelName(level).lower(), **plan.uvicorn_options())


if __name__ == "__main__":
    main()
