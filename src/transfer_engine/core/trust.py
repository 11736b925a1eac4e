# src/transfer_engine/core/trust.py
"""
Process-wide trust material.

``global_init()`` must run once before the first descriptor is submitted;
``LifecycleController`` calls it from its constructor. Repeated calls return
the path chosen by the first one. There is no teardown.
"""
import logging
import shutil
import threading
from pathlib import Path
from typing import Optional

import certifi

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_ca_path: Optional[str] = None


def global_init(ca_path: Optional[str] = None) -> str:
    """
    Provision the CA bundle and remember its path.

    Args:
        ca_path: Where the bundle should live. When the file does not exist
            yet it is copied from the certifi bundle. None uses the certifi
            bundle in place.

    Returns:
        Path of the CA bundle used for every transfer

    Example:
        >>> path = global_init()
        >>> global_init("/somewhere/else.pem") == path  # already initialized
        True
    """
    global _ca_path

    with _init_lock:
        if _ca_path is not None:
            return _ca_path

        if ca_path is None:
            _ca_path = certifi.where()
        else:
            target = Path(ca_path)
            if not target.exists():
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(certifi.where(), target)
                logger.info(f"CA bundle provisioned at {target}")
            _ca_path = str(target)

        logger.debug(f"Trust bundle: {_ca_path}")
        return _ca_path


def get_ca_path() -> Optional[str]:
    """Path chosen by ``global_init()``, or None before initialization."""
    return _ca_path
