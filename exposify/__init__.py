"""Generate typed JSON-RPC clients from exposed TypeScript services."""

__version__ = "0.1.0"
