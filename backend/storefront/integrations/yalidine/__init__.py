from .client import YalidineClient

__all__ = ["YalidineClient"]
