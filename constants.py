import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Send peer-left to the remaining meeting members when someone departs
ANNOUNCE_PEER_LEFT = _env_flag("ANNOUNCE_PEER_LEFT")
# Send an "error" message back to the sender for dropped requests
REPORT_ERRORS_TO_SENDER = _env_flag("REPORT_ERRORS_TO_SENDER")

CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

WS_PATH = "/ws"
