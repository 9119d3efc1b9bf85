"""Normalization subpackage (NFC / NFKD / lowercase)."""

from .service import to_normal_nfc_form, to_normal_nfkd_form, to_lower  # noqa: F401

__all__ = ['to_normal_nfc_form', 'to_normal_nfkd_form', 'to_lower']
