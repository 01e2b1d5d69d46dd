from importlib.metadata import PackageNotFoundError, version
import logging
import os
import platform
from typing import Dict, Optional


LOG = logging.getLogger(__name__)

DEFAULT_SOURCE = "gopixel-python"


def get_version() -> Optional[str]:
    """
    Get the version of the GoPixel package.

    Returns:
      Optional[str]: The installed version if found, otherwise None.
    """
    try:
        return version("gopixel")
    except PackageNotFoundError:
        LOG.debug("Unable to get GoPixel version.")
        return None


def get_identifier() -> str:
    """
    Identifier of the tracker build sending the events.

    Can be overridden with GOPIXEL_SOURCE, e.g. when the tracker is embedded
    in another product.
    """
    return os.environ.get("GOPIXEL_SOURCE", None) or DEFAULT_SOURCE


def get_user_agent() -> str:
    """
    Get the user agent string for HTTP requests.

    Returns:
      str: gopixel/{version} ({os} {arch}; Python/{python_version})
    """
    pixel_version = get_version() or "unknown"
    os_name = platform.system()

    machine = platform.machine()
    if machine in ("x86_64", "AMD64"):
        arch = "x86_64"
    elif machine in ("arm64", "aarch64"):
        arch = "arm_64"
    else:
        arch = machine or "unknown"

    return f"gopixel/{pixel_version} ({os_name} {arch}; Python/{platform.python_version()})"


def get_meta_http_headers() -> Dict[str, str]:
    """
    Headers describing the client, sent with every batch.
    """
    return {
        "GoPixel-Client-Version": get_version() or "",
        "GoPixel-Client-Id": get_identifier(),
        "User-Agent": get_user_agent(),
    }
