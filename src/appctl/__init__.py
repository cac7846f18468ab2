"""Declarative reconciliation of PaaS apps."""

__version__ = "0.1.0"
