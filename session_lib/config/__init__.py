from .settings import SessionSettings, StoreKind, load_settings

__all__ = ["SessionSettings", "StoreKind", "load_settings"]
