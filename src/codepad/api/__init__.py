"""Codepad HTTP API."""
