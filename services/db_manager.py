"""
Database Manager for FaceGate
Handles all database operations using psycopg2

Identity embeddings are stored flat: one REAL column per dimension (e0..e127),
so inserts and selects stay simple parameterized statements.
"""

import psycopg2
import psycopg2.extras
import logging
from datetime import datetime

import numpy as np

from engines.facial_recognition.gallery import EMBEDDING_DIM

logger = logging.getLogger(__name__)

EMBEDDING_COLUMNS = [f"e{i}" for i in range(EMBEDDING_DIM)]

SCHEMA = f"""
    CREATE TABLE IF NOT EXISTS identities (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT NOW(),
        {', '.join(f'{col} REAL NOT NULL' for col in EMBEDDING_COLUMNS)}
    );
    CREATE INDEX IF NOT EXISTS idx_identities_name ON identities (name);

    CREATE TABLE IF NOT EXISTS access_events (
        id SERIAL PRIMARY KEY,
        identity_id INTEGER NOT NULL,
        identity_name TEXT,
        timestamp TIMESTAMP NOT NULL
    );

    CREATE TABLE IF NOT EXISTS admin_users (
        id SERIAL PRIMARY KEY,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'admin'
    );
"""


class DBManager:
    def __init__(self, database_url):
        """Initialize database connection"""
        self.database_url = database_url
        self.conn = None
        self.connect()

    def connect(self):
        """Establish database connection"""
        try:
            self.conn = psycopg2.connect(self.database_url)
            logger.info("Database connection established")
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            raise

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            logger.info("Database connection closed")

    def execute_query(self, query, params=None, fetch=True, commit=False):
        """Execute a database query"""
        try:
            with self.conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cursor:
                cursor.execute(query, params)

                if commit:
                    self.conn.commit()

                if fetch:
                    return cursor.fetchall()
                return None

        except Exception as e:
            self.conn.rollback()
            logger.error(f"Database error: {e}")
            raise

    def init_schema(self):
        """Create tables if they do not exist"""
        self.execute_query(SCHEMA, fetch=False, commit=True)
        logger.info("Database schema ready")

    # ==================== IDENTITY OPERATIONS ====================

    def insert_identity(self, name, embedding):
        """Insert one face template; returns the new identity id"""
        values = [float(v) for v in embedding]
        if len(values) != EMBEDDING_DIM:
            raise ValueError(f"Expected {EMBEDDING_DIM} values, got {len(values)}")

        query = f"""
            INSERT INTO identities (name, {', '.join(EMBEDDING_COLUMNS)})
            VALUES (%s, {', '.join(['%s'] * EMBEDDING_DIM)})
            RETURNING id
        """
        result = self.execute_query(query, (name, *values), commit=True)
        return result[0]['id'] if result else None

    def delete_identities_by_name(self, name):
        """Delete every template enrolled under a name; returns the count removed"""
        query = "DELETE FROM identities WHERE name = %s RETURNING id"
        result = self.execute_query(query, (name,), commit=True)
        return len(result)

    def get_all_identities(self):
        """Get all templates as (id, name, float32 vector), oldest first"""
        query = f"""
            SELECT id, name, {', '.join(EMBEDDING_COLUMNS)}
            FROM identities
            ORDER BY id ASC
        """
        rows = self.execute_query(query)
        return [
            (
                row['id'],
                row['name'],
                np.array([row[col] for col in EMBEDDING_COLUMNS], dtype=np.float32),
            )
            for row in rows
        ]

    def get_identity_names(self):
        """Get enrolled names with their template counts"""
        query = """
            SELECT name, COUNT(*) AS templates, MIN(created_at) AS enrolled_at
            FROM identities
            GROUP BY name
            ORDER BY name
        """
        return self.execute_query(query)

    # ==================== ACCESS EVENT OPERATIONS ====================

    def record_access_event(self, event):
        """Append an AccessEvent to the access log"""
        query = """
            INSERT INTO access_events (identity_id, identity_name, timestamp)
            VALUES (%s, %s, %s)
            RETURNING id
        """
        result = self.execute_query(
            query,
            (event.identity_id, event.name, datetime.fromtimestamp(event.timestamp)),
            commit=True
        )
        return result[0]['id'] if result else None

    def get_access_events(self, identity_id=None, limit=100):
        """Get access events, newest first"""
        query = "SELECT id, identity_id, identity_name, timestamp FROM access_events"
        params = []

        if identity_id is not None:
            query += " WHERE identity_id = %s"
            params.append(identity_id)

        query += " ORDER BY timestamp DESC LIMIT %s"
        params.append(limit)

        return self.execute_query(query, tuple(params))

    # ==================== ADMIN OPERATIONS ====================

    def get_admin_user(self, username):
        """Get admin user by username"""
        query = "SELECT * FROM admin_users WHERE username = %s"
        results = self.execute_query(query, (username,))
        return results[0] if results else None

    def create_admin_user(self, username, password_hash, role='admin'):
        """Create admin user"""
        query = """
            INSERT INTO admin_users (username, password_hash, role)
            VALUES (%s, %s, %s)
            RETURNING id
        """
        result = self.execute_query(query, (username, password_hash, role), commit=True)
        return result[0]['id'] if result else None
