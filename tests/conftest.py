"""Pytest configuration and shared fixtures."""

import os

from hypothesis import settings

# Keep generated RSA keys fast unless the caller asked for something else.
if "PEER_ID_RSA_BITS" not in os.environ:
    os.environ["PEER_ID_RSA_BITS"] = "1024"

# Create a profile named "no_deadline" with deadline disabled.
settings.register_profile("no_deadline", deadline=None)
settings.load_profile("no_deadline")
