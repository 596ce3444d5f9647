#!/usr/bin/env python3
"""
Create (or check) an admin account for the FaceGate API.

Usage:
    python scripts/create_admin.py <username> <password>
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import bcrypt

from services.db_manager import DBManager
from config import Config


def create_admin(db, username, password, role='admin'):
    """Insert an admin user with a bcrypt hash; returns the new id, or None if it exists."""
    if db.get_admin_user(username):
        print(f"  ✓ Admin {username} already exists")
        return None

    password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
    user_id = db.create_admin_user(username, password_hash, role)
    print(f"  ✓ Created admin: {username} (ID: {user_id})")
    return user_id


if __name__ == '__main__':
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin.py <username> <password>")
        sys.exit(1)

    if not Config.DATABASE_URL:
        print("❌ DATABASE_URL is not set")
        sys.exit(1)

    db = DBManager(Config.DATABASE_URL)
    try:
        db.init_schema()
        create_admin(db, sys.argv[1], sys.argv[2])
    finally:
        db.close()
