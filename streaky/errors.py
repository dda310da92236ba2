"""Exception types shared by the engine, the stores and the HTTP service."""

from __future__ import annotations


class StreakyError(Exception):
    """Base class for all Streaky errors."""


class ValidationError(StreakyError):
    """Rejected user input (e.g. blank list title or task text)."""


class StoreError(StreakyError):
    """A record store call failed."""


class TransientStoreError(StoreError):
    """Network or storage failure that a later write may fix."""


class NotFoundError(StoreError):
    """The record does not exist or belongs to another user."""


class AuthError(StoreError):
    """Credentials are missing, expired or revoked and could not be refreshed."""
