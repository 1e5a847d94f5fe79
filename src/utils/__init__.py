"""Utility functions."""

from src.utils.audit import get_client_ip, log_action
from src.utils.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "log_action",
    "get_client_ip",
]
