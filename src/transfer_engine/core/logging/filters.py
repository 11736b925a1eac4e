"""
Log filters.
"""

import logging
from typing import Any, Dict


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service name, environment, ...) to every record.

    Fields already present on the record are left untouched.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "downloader"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
