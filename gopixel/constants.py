# -*- coding: utf-8 -*-
import os
from pathlib import Path

DIR_NAME = ".gopixel"

USER_CONFIG_DIR = Path("~", DIR_NAME).expanduser()
CONFIG_FILE_USER = USER_CONFIG_DIR / "config.ini"

# Collection endpoint, overridable per environment
DEFAULT_API_ENDPOINT = "https://pixel.local/events"
API_ENDPOINT = os.getenv("GOPIXEL_API_ENDPOINT", DEFAULT_API_ENDPOINT)

# Buffer
MAX_BUFFER_SIZE = 1000

# Scheduler
DEFAULT_FRAME_INTERVAL = 1 / 60
MAX_CONSECUTIVE_ERRORS = 3

# Send task
SEND_TASK_NAME = "eventSender"
SEND_TASK_RATE = 10.0

# Unload flush
UNLOAD_GRACE_PERIOD = 2.0

# Transport headers
HEADER_VISITOR_ID = "X-GoPixel-Id"
HEADER_CLIENT_LICENCE = "X-GoPixel-Licence"

# Exit codes
EXIT_CODE_OK = 0
EXIT_CODE_FAILURE = 1
EXIT_CODE_INVALID_CONFIG = 2
