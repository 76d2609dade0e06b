"""
Early pytest configuration plugin.

This file is loaded early by pytest to set up the test environment
before any test modules are imported.
"""

import logging
import os
import sys


def pytest_configure(config):
    """
    Mark test mode and keep structured logs quiet unless asked for.

    Runs before collection, so the exec modules see the environment when
    they are first imported.
    """
    os.environ["RADIUS_EXEC_TEST_MODE"] = "1"

    # Config tests set their own overrides; stray ones from the shell would
    # leak into every loader test.
    for key in list(os.environ):
        if key.startswith("RADIUS_EXEC_") and key != "RADIUS_EXEC_TEST_MODE":
            del os.environ[key]

    from radius_exec.utils.logger import configure

    configure(level=logging.WARNING)
    print("[pytest_configure] Test mode enabled", file=sys.stderr)
