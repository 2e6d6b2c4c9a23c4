# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Passport registry configuration.

Registry identity and clock settings are fixed at startup. Service defaults
may be overridden via environment variables.
"""

import hashlib
import json
import os

# =============================================================================
# REGISTRY
# =============================================================================

# The owner is fixed for the lifetime of a registry. Changing it against an
# existing database is refused at startup.
REGISTRY_OWNER: str = os.getenv("PASSPORT_REGISTRY_OWNER", "registry-owner")
START_HEIGHT: int = int(os.getenv("PASSPORT_REGISTRY_START_HEIGHT", "0"))

# =============================================================================
# NETWORK
# =============================================================================

HTTP_HOST: str = os.getenv("PASSPORT_REGISTRY_HTTP_HOST", "0.0.0.0")
HTTP_PORT: int = int(os.getenv("PASSPORT_REGISTRY_HTTP_PORT", "8000"))

# Bearer token for the HTTP surface. Empty disables auth (development mode).
AUTH_TOKEN: str = os.getenv("PASSPORT_REGISTRY_AUTH_TOKEN", "")

# Base URL used by the CLI client.
REGISTRY_URL: str = os.getenv("PASSPORT_REGISTRY_URL", "http://localhost:8000")
CLIENT_TIMEOUT_SECONDS: float = float(os.getenv("PASSPORT_REGISTRY_CLIENT_TIMEOUT", "10.0"))

# =============================================================================
# PERSISTENCE
# =============================================================================

# SQLAlchemy URL. Empty keeps state in memory only.
DATABASE_URL: str = os.getenv("PASSPORT_REGISTRY_DATABASE_URL", "")
PERSISTENCE_ENABLED: bool = bool(DATABASE_URL)

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL: str = os.getenv("PASSPORT_REGISTRY_LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv("PASSPORT_REGISTRY_LOG_FORMAT", "json")


# =============================================================================
# CONFIG FINGERPRINT
# =============================================================================

def config_fingerprint() -> str:
    """SHA256 of state-affecting settings, reported by the health endpoint."""
    data = json.dumps({
        "owner": REGISTRY_OWNER,
        "start_height": START_HEIGHT,
        "persistence": PERSISTENCE_ENABLED,
    }, sort_keys=True)
    return hashlib.sha256(data.encode()).hexdigest()[:16]
