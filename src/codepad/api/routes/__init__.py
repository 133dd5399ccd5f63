"""Codepad API routers."""
