"""
Log codes for configuration-related operations.
"""

CONFIG = "config"

# Config file
CONFIG_FILE = f"{CONFIG}.file"
CONFIG_FILE_NOT_FOUND = f"{CONFIG_FILE}.not_found"
CONFIG_FILE_MISSING_SECTION = f"{CONFIG_FILE}.missing_section"
CONFIG_FILE_UNKNOWN_KEY = f"{CONFIG_FILE}.unknown_key"

# Environment
CONFIG_ENV_OVERRIDE = f"{CONFIG}.env_override"

# Resolution
CONFIG_RESOLVED = f"{CONFIG}.resolved"
CONFIG_INVALID = f"{CONFIG}.invalid"
