"""Service layer helpers for the portal."""

from .code_rotator import CodeRotator, generate_code, update_order_code

__all__ = ["CodeRotator", "generate_code", "update_order_code"]
