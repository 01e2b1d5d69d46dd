# -*- coding: utf-8 -*-

__author__ = """GoPixel"""
__email__ = 'dev@gopixel.io'

import os

ROOT = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(ROOT, 'VERSION')) as version_file:
    VERSION = version_file.read().strip()

from gopixel.config import PixelConfig, TrackingContext, load_config  # noqa: E402
from gopixel.events import Event, Payload  # noqa: E402
from gopixel.tracker import Tracker  # noqa: E402

__all__ = [
    "VERSION",
    "Event",
    "Payload",
    "PixelConfig",
    "TrackingContext",
    "Tracker",
    "load_config",
]
