from .consts import VERSION

__version__ = VERSION
