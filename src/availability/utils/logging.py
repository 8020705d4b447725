"""Logging utils"""

import os
import sys
from datetime import datetime

from loguru import logger

from availability.settings.manager import settings_manager
from availability.utils import data_dir_path


def setup_logger(level):
    """Setup the logger"""

    # Helper function to get log settings from environment or use default
    def get_log_settings(name, default_color, default_icon):
        color = os.getenv(f"AVAILABILITY_LOGGER_{name}_FG", default_color)
        icon = os.getenv(f"AVAILABILITY_LOGGER_{name}_ICON", default_icon)
        return f"<fg #{color}>", icon

    # TRACE: 5
    # DEBUG: 10
    # INFO: 20
    # SUCCESS: 25
    # WARNING: 30
    # ERROR: 40
    # CRITICAL: 50

    log_levels = {
        "AVAILABILITY": (20, "92a1cf", "🟢"),
        "NOTIFICATION": (20, "ce7fab", "✉️ "),
        "REQUEST": (20, "cc6600", "🎫"),
        "DATABASE": (5, "d834eb", "🛢️"),  # trace
    }

    # Set log levels
    for name, (no, default_color, default_icon) in log_levels.items():
        color, icon = get_log_settings(name, default_color, default_icon)
        try:
            logger.level(name, no=no, color=color, icon=icon)
        except (TypeError, ValueError):
            # loguru refuses to change the severity of an existing level
            logger.level(name, color=color, icon=icon)

    # Default log levels
    debug_color, debug_icon = get_log_settings("DEBUG", "98C1D9", "🐞")
    trace_color, trace_icon = get_log_settings("TRACE", "27F5E7", "✏️ ")
    info_color, info_icon = get_log_settings("INFO", "818589", "📰")
    warning_color, warning_icon = get_log_settings("WARNING", "ffcc00", "⚠️ ")
    critical_color, critical_icon = get_log_settings("CRITICAL", "ff0000", "")
    success_color, success_icon = get_log_settings("SUCCESS", "00ff00", "✔️ ")

    logger.level("DEBUG", color=debug_color, icon=debug_icon)
    logger.level("INFO", color=info_color, icon=info_icon)
    logger.level("WARNING", color=warning_color, icon=warning_icon)
    logger.level("CRITICAL", color=critical_color, icon=critical_icon)
    logger.level("SUCCESS", color=success_color, icon=success_icon)
    logger.level("TRACE", color=trace_color, icon=trace_icon)

    log_format = (
        "<fg #818589>{time:YY-MM-DD} {time:HH:mm:ss}</fg #818589> | "
        "<level>{level.icon}</level> <level>{level: <12}</level> | "
        "<fg #e7e7e7>{module}</fg #e7e7e7>.<fg #e7e7e7>{function}</fg #e7e7e7> - <level>{message}</level>"
    )

    log_settings = settings_manager.settings.logging
    retention_value = (
        f"{log_settings.retention_hours} hours" if log_settings.enabled else None
    )
    rotation_value = (
        f"{log_settings.rotation_mb} MB" if log_settings.rotation_mb > 0 else None
    )

    handlers = [
        {
            "sink": sys.stderr,
            "level": level.upper() or "INFO",
            "format": log_format,
            "backtrace": False,
            "diagnose": False,
            "enqueue": True,
        }
    ]

    if log_settings.enabled:
        logs_dir_path = data_dir_path / "logs"
        os.makedirs(logs_dir_path, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M")
        log_filename = logs_dir_path / f"availability-{timestamp}.log"

        handlers.append(
            {
                "sink": log_filename,
                "level": level.upper(),
                "format": log_format,
                "rotation": rotation_value,
                "retention": retention_value,
                "compression": (
                    log_settings.compression
                    if log_settings.compression != "disabled"
                    else None
                ),
                "backtrace": False,
                "diagnose": True,
                "enqueue": True,
            }
        )

    logger.configure(handlers=handlers)


setup_logger(settings_manager.settings.log_level)
