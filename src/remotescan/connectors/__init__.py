from .mysql import RemoteClient, RemoteResult

__all__ = ["RemoteClient", "RemoteResult"]
