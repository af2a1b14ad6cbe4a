"""Shared CLI/config option sets.

Keep these centralized so CLI parser choices and config validation stay in
sync.
"""

DEFAULT_ROOT = "."
DEFAULT_OUTPUT = "./_out"
DEFAULT_DELIMITER = ","
DEFAULT_ENCODING = "utf-8"
DEFAULT_LOG_LEVEL = "INFO"

WORKSPACE_FILENAME = "consolidate.yaml"

LOG_LEVEL_CHOICES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VISUAL_CHOICES = ("auto", "tqdm", "rich", "off")
