from procbind.utils import logging, text

__all__ = ("logging", "text")
