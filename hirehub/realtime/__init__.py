from hirehub.realtime.registry import ConnectionRegistry

__all__ = ["ConnectionRegistry"]
