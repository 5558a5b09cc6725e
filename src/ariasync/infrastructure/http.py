"""HTTP transport factories for talking to the daemon."""

import ssl
import typing as t

import aiohttp
import certifi


def create_ssl_context() -> ssl.SSLContext:
    """Create an SSL context backed by certifi's CA bundle.

    Gives portable certificate verification for daemons exposed over HTTPS,
    independent of the platform's certificate store.
    """
    return ssl.create_default_context(cafile=certifi.where())


def create_secure_connector(
    ssl: ssl.SSLContext | None = None, **kwargs: t.Any
) -> aiohttp.TCPConnector:
    """Create a TCP connector that verifies certificates with certifi.

    Args:
        ssl: SSL context to use. Defaults to create_ssl_context().
        **kwargs: Extra TCPConnector arguments (limit, keepalive_timeout, ...).
    """
    context = ssl if ssl is not None else create_ssl_context()
    return aiohttp.TCPConnector(ssl=context, **kwargs)
