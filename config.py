import os
import sys
import getpass
from datetime import datetime, timezone
from typing import Dict, Any

from dotenv import load_dotenv, find_dotenv

from constants import MODE_AEAD, MODES, BYTE_ORDER, BYTE_ORDERS

# --------------------------
# Configuration and logging
# --------------------------
def default_home() -> str:
    return os.path.join(os.path.expanduser('~'), '.spatialcipher')

def load_config() -> Dict[str, Any]:
    """Load configuration from environment variables (and a .env file if present)"""
    load_dotenv(find_dotenv(usecwd=True))
    cfg = {}

    home = default_home()
    cfg['params_path'] = os.path.expanduser(os.environ.get('SPATIAL_PARAMS', os.path.join(home, 'params.json')))
    cfg['audit_log'] = os.path.expanduser(os.environ.get('AUDIT_LOG', os.path.join(home, 'audit.log')))

    mode = os.environ.get('SPATIAL_MODE', MODE_AEAD).strip().lower()
    if mode not in MODES:
        raise ValueError(f"SPATIAL_MODE must be one of {', '.join(MODES)}, got {mode!r}")
    cfg['mode'] = mode

    byteorder = os.environ.get('SPATIAL_BYTE_ORDER', BYTE_ORDER).strip().lower()
    if byteorder not in BYTE_ORDERS:
        raise ValueError(f"SPATIAL_BYTE_ORDER must be one of {', '.join(sorted(BYTE_ORDERS))}, got {byteorder!r}")
    cfg['byteorder'] = byteorder

    return cfg

def audit_log(cfg: Dict[str, Any], message: str) -> None:
    """Write audit log entry with timestamp"""
    log_path = cfg.get("audit_log", os.path.join(default_home(), 'audit.log'))
    timestamp = datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"

    try:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        with open(log_path, "a") as f:
            f.write(f"{timestamp} {message}\n")
    except OSError as e:
        print(f"Warning: Failed to write audit log: {e}", file=sys.stderr)

def get_current_user() -> str:
    """Get current username safely"""
    try:
        return os.getlogin()
    except OSError:
        return getpass.getuser()
