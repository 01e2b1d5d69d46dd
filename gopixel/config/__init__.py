from .context import AlterationContext, TrackingContext, new_visitor_id
from .main import PixelConfig, load_config

__all__ = [
    "AlterationContext",
    "TrackingContext",
    "new_visitor_id",
    "PixelConfig",
    "load_config",
]
