"""Test package. Environment defaults must be set before app settings are first loaded."""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("APP_URL", "http://x/")
os.environ.setdefault("AVATAR_STORAGE_DIR", tempfile.mkdtemp(prefix="warden-avatars-"))
