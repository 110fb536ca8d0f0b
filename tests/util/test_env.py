"""Test environment utilities."""

import requests

from tests.util.firebase_emulator import functions_base_url


def is_emulator_running() -> bool:
    """Check if the Functions emulator answers."""
    try:
        response = requests.get(f"{functions_base_url()}/health_check", timeout=2)
        return response.status_code in (200, 503)
    except requests.RequestException:
        return False
