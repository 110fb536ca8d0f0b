"""Functions, Firestore and Storage emulators for the integration suite."""

import json
import os
import select
import subprocess
import time
from functools import lru_cache
from typing import Dict

import firebase_admin
import pytest

from locki.util.logger import get_logger

logger = get_logger(__name__)

PROJECT_ID = "test-project"
REGION = "us-central1"
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))
FIREBASE_CONFIG_PATH = os.path.join(PROJECT_ROOT, "firebase.json")
READY_MARKER = "All emulators ready!"
START_TIMEOUT_SEC = 120


@lru_cache(maxsize=None)
def emulator_ports() -> Dict[str, int]:
    """Emulator ports declared in firebase.json."""
    with open(FIREBASE_CONFIG_PATH) as config_file:
        emulators = json.load(config_file)["emulators"]
    return {name: settings["port"] for name, settings in emulators.items() if isinstance(settings, dict) and "port" in settings}


def functions_base_url() -> str:
    return f"http://127.0.0.1:{emulator_ports()['functions']}/{PROJECT_ID}/{REGION}"


@pytest.fixture(scope="session")
def firebase_emulator():
    """Connection details of the running emulators."""
    ports = emulator_ports()
    return {
        "base_url": functions_base_url(),
        "firestore_host": f"localhost:{ports['firestore']}",
        "storage_host": f"localhost:{ports['storage']}",
    }


def start_functions_emulator(use_firestore_emulator: bool = True, use_storage_emulator: bool = True, show_logs: bool = False):
    """Start the emulators and block until they report ready.

    The functions run with ENV=development so the integration suite can
    identify callers with the User-Id header.

    Returns:
        The emulator process; the caller terminates it
    """
    ports = emulator_ports()
    env = os.environ.copy()
    env["ENV"] = "development"
    env["GCLOUD_PROJECT"] = PROJECT_ID
    os.environ["GCLOUD_PROJECT"] = PROJECT_ID

    # A stale default app would keep pointing at production hosts
    try:
        firebase_admin.delete_app(firebase_admin.get_app())
    except ValueError:
        pass

    services = ["functions"]
    if use_firestore_emulator:
        services.append("firestore")
        env["FIRESTORE_EMULATOR_HOST"] = os.environ["FIRESTORE_EMULATOR_HOST"] = f"localhost:{ports['firestore']}"
    if use_storage_emulator:
        services.append("storage")
        env["FIREBASE_STORAGE_EMULATOR_HOST"] = os.environ["FIREBASE_STORAGE_EMULATOR_HOST"] = f"localhost:{ports['storage']}"

    for service in services:
        _kill_process_on_port(ports[service])

    cmd = [
        "firebase",
        "emulators:start",
        "--only",
        ",".join(services),
        "--project",
        PROJECT_ID,
        "--config",
        FIREBASE_CONFIG_PATH,
    ]
    logger.info(f"Starting Firebase emulators: {services}")
    emulator_proc = subprocess.Popen(
        cmd,
        env=env,
        cwd=PROJECT_ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        universal_newlines=True,
        bufsize=1,
    )

    try:
        _wait_until_ready(emulator_proc, show_logs)
    except Exception:
        emulator_proc.terminate()
        try:
            emulator_proc.wait(timeout=10)
        except subprocess.TimeoutExpired:
            emulator_proc.kill()
        raise

    logger.info("Firebase emulators are ready")
    return emulator_proc


def _wait_until_ready(emulator_proc: subprocess.Popen, show_logs: bool):
    deadline = time.time() + START_TIMEOUT_SEC
    while time.time() < deadline:
        if emulator_proc.poll() is not None:
            output, _ = emulator_proc.communicate()
            raise RuntimeError(f"Firebase emulator exited with code {emulator_proc.returncode}: {output}")

        readable, _, _ = select.select([emulator_proc.stdout], [], [], 1)
        if not readable:
            continue
        line = emulator_proc.stdout.readline()
        if show_logs and line:
            print(line.rstrip())
        if READY_MARKER in line:
            return
    raise RuntimeError("Firebase emulators did not start in time.")


def _kill_process_on_port(port: int):
    """Kill whatever still listens on the port from an earlier run."""
    try:
        result = subprocess.run(["lsof", "-ti", f":{port}"], capture_output=True, text=True, check=False)
    except OSError as e:
        logger.warning(f"Could not check processes on port {port}: {e}")
        return
    for pid in result.stdout.split():
        logger.info(f"Killing process {pid} on port {port}")
        subprocess.run(["kill", "-9", pid], check=False)
