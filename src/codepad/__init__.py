"""Codepad: per-user code files on a flat object store."""

__version__ = "0.1.0"
