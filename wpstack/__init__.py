"""wpstack — idempotent provisioning of a WordPress web server."""

__version__ = "0.1.0"
