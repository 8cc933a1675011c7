from hirehub.domain.models import Identity

__all__ = ["Identity"]
