"""Detect which known vulnerabilities affect a program's modules, packages and symbols."""

__version__ = "0.1.0"