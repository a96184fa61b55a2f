import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


SETUP_HOST = os.getenv("SETUP_HOST", "")
IOT_HOST = os.getenv("IOT_HOST", "")
IOT_USERNAME = os.getenv("IOT_USERNAME", "")
IOT_PASSWORD = os.getenv("IOT_PASSWORD", "")
POLL_INTERVAL = int(os.getenv("POLL_INTERVAL", "60"))
DEVICE_STORE_DIR = os.getenv("DEVICE_STORE_DIR", ".")
VERIFY_TLS = _flag("VERIFY_TLS", "false")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CONTEXT_ROOT = os.getenv("CONTEXT_ROOT", "/ngw")
PORT = int(os.getenv("PORT", "11000"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# The wrapper used to ship as two programs; these flags cover the differences
STATUS_ENABLED = _flag("STATUS_ENABLED", "true")
NETATMO_RESET_ENABLED = _flag("NETATMO_RESET_ENABLED", "true")

# --- Upstream endpoints ---

SETUP_URI = "/ords/pdb1/smarthospitality/netatmo/setup"
UPDATE_TARGET_TEMP_URI = "/ords/pdb1/smarthospitality/netatmo/target/set/{demozone}/{temperature}"
IOT_ACTION_URI = "/iot/api/v2/apps/{app}/devices/{device}/deviceModels/{urn}/actions/{action}"

NETATMO_BASE_URL = "https://api.netatmo.com"
NETATMO_SCOPE = "read_thermostat write_thermostat"

# --- Thermostat device model ---

THERMOSTAT_URN = "urn:com:oracle:iot:device:timg:vfsmarthospitality:thermostat"
SET_POINT_ACTION = "SetSetPointTemp"

# Accepted target temperatures, inclusive on both ends
MIN_TARGET_TEMP = 5
MAX_TARGET_TEMP = 30

# Manual mode lasts this long after a set-point command
SETPOINT_DURATION_MINUTES = 30

# Timeout in seconds for every outbound HTTP call
HTTP_TIMEOUT = 30.0
