#!/usr/bin/env python3
"""
filevault -- Directory-authenticated personal file storage.

Usage:
  python main.py
  python main.py --port 8443 --tls-keyfile localhost.key --tls-certfile localhost.cert
  python main.py --host 127.0.0.1 --reload

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  LDAP_URL       Directory server, e.g. ldap://ldap.example.com:389
  LDAP_BIND_DN   Service account used to look users up.
  LDAP_BASE      Search base for user entries.
  TLS_KEYFILE / TLS_CERTFILE
                 Serve HTTPS with this key/cert pair. Plain HTTP if unset.
"""

import argparse
from pathlib import Path

import uvicorn

from core.config import get_settings


def _tls_pair(keyfile: str, certfile: str) -> tuple[str, str] | None:
    """Return the key/cert pair if both are given, None if neither.

    One without the other is a configuration mistake, not a request for HTTP.
    """
    if not keyfile and not certfile:
        return None
    if not keyfile or not certfile:
        raise SystemExit("  [!] TLS needs both a key file and a certificate file.")
    for label, path in (("key", keyfile), ("certificate", certfile)):
        if not Path(path).is_file():
            raise SystemExit(f"  [!] TLS {label} file '{path}' is not a readable file.")
    return keyfile, certfile


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="filevault",
        description="Serve the filevault API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --port 3001 --tls-keyfile localhost.key --tls-certfile localhost.cert
  DEBUG=true python main.py --reload
        """,
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Port (default: {settings.port})")
    parser.add_argument("--tls-keyfile", default=settings.tls_keyfile, metavar="PATH", help="TLS private key (PEM)")
    parser.add_argument("--tls-certfile", default=settings.tls_certfile, metavar="PATH", help="TLS certificate (PEM)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    args = parser.parse_args()

    tls = _tls_pair(args.tls_keyfile, args.tls_certfile)
    scheme = "https" if tls else "http"
    print(f"filevault listening on {scheme}://{args.host}:{args.port}")

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        ssl_keyfile=tls[0] if tls else None,
        ssl_certfile=tls[1] if tls else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
