"""
Firebase Functions entry point.
All functions must be exported from this file for deployment.
"""

import logging
import os

import firebase_admin
from firebase_admin import initialize_app

# Set emulator environment variables if running in emulators
if os.getenv('FUNCTIONS_EMULATOR') == 'true':
    # These are typically already set by the test runner, but ensure they're set
    if not os.getenv('FIRESTORE_EMULATOR_HOST'):
        os.environ['FIRESTORE_EMULATOR_HOST'] = 'localhost:8080'
    if not os.getenv('FIREBASE_AUTH_EMULATOR_HOST'):
        os.environ['FIREBASE_AUTH_EMULATOR_HOST'] = 'localhost:9099'
    if not os.getenv('FIREBASE_STORAGE_EMULATOR_HOST'):
        os.environ['FIREBASE_STORAGE_EMULATOR_HOST'] = 'localhost:9199'

# Initialize Firebase Admin SDK
# The SDK automatically detects emulator environment variables
if not firebase_admin._apps:
    initialize_app()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Import callable functions
from locki.brokers.callable import *  # noqa: E402,F401,F403
from locki.brokers.callable import __all__ as callable_functions  # noqa: E402

# Import HTTPS functions
from locki.brokers.https.health_check import health_check  # noqa: E402

# Import triggered functions
from locki.brokers.triggered.on_user_stats_written import on_user_stats_written  # noqa: E402

# Export all functions for Firebase deployment
__all__ = [
    # Callable functions
    *callable_functions,

    # HTTPS functions
    'health_check',

    # Triggered functions
    'on_user_stats_written',
]

logger.info("Firebase Functions initialized successfully")
