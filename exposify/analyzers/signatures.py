"""Built-in type names and small helpers for textual TypeScript signatures."""

from __future__ import annotations

# Single-parameter wrappers whose inner type is what travels over the wire.
ASYNC_WRAPPERS = frozenset({"Promise", "Observable"})

BUILTIN_TYPE_NAMES = frozenset(
    {
        # primitives
        "any",
        "bigint",
        "boolean",
        "never",
        "null",
        "number",
        "object",
        "string",
        "symbol",
        "undefined",
        "unknown",
        "void",
        # global and utility types
        "Array",
        "ArrayBuffer",
        "Awaited",
        "Blob",
        "Buffer",
        "Date",
        "Error",
        "Exclude",
        "Extract",
        "File",
        "Function",
        "Map",
        "NonNullable",
        "Object",
        "Observable",
        "Omit",
        "Partial",
        "Pick",
        "Promise",
        "ReadonlyArray",
        "Readonly",
        "Record",
        "RegExp",
        "Required",
        "ReturnType",
        "Set",
        "Uint8Array",
    }
)

UNKNOWN_TYPE = "unknown"


def is_builtin(name: str) -> bool:
    return name in BUILTIN_TYPE_NAMES


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


__all__ = [
    "ASYNC_WRAPPERS",
    "BUILTIN_TYPE_NAMES",
    "UNKNOWN_TYPE",
    "collapse_whitespace",
    "is_builtin",
]
