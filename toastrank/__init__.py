"""Toastrank: upload, rate and discuss toasters."""

__version__ = "0.1.0"
