"""Configuration constants.

Exec module instances live in INI sections named ``exec`` (the bare
instance) or ``exec <name>`` (a named instance).
"""

# Section names
SECTION_EXEC = "exec"
SECTION_LOGGING = "logging"

# Environment variables
ENV_PREFIX = "RADIUS_EXEC_"
ENV_CONFIG = "RADIUS_EXEC_CONFIG"
ENV_LOG_LEVEL = "RADIUS_EXEC_LOG_LEVEL"

DEFAULT_CONFIG_PATH = "config/exec.conf"

# Options recognised in an exec section
EXEC_OPTIONS = (
    "wait",
    "program",
    "input_pairs",
    "output_pairs",
    "packet_type",
    "shell_escape",
    "timeout",
    "ntlm_auth_response",
)
