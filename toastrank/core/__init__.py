"""Core infrastructure: configuration glue, logging, context, storage backends.

Import submodules directly (``toastrank.core.logging``,
``toastrank.core.database``...) to keep package import order simple.
"""
