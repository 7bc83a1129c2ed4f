"""Captive-portal gateway components: embedded HTTP server, ACLs, client list, JSON and options."""

__version__ = "1.3.0"

__all__ = [
    "acl",
    "clients",
    "commandline",
    "httputil",
    "jsoncodec",
    "jsonitem",
    "request",
    "server",
]