from .interfaces import CookieOptions, HostAdapter
from .mapping import MappingAdapter, SimpleRequest
from .starlette import StarletteAdapter

__all__ = [
    "CookieOptions",
    "HostAdapter",
    "MappingAdapter",
    "SimpleRequest",
    "StarletteAdapter",
]
