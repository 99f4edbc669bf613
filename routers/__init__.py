# routers/__init__.py
from . import payments

__all__ = ["payments"]
