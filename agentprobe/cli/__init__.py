from .main import app, version_callback


__all__ = ["app", "version_callback"]
