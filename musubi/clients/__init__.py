"""Clients for remote services."""

from .worker_client import WorkerClient

__all__ = ["WorkerClient"]
