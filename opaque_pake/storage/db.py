"""MySQL password_files table: one opaque password file per credential identifier."""

from typing import Optional

import pymysql
import structlog

from opaque_pake.common.config import get_db_params


logger = structlog.get_logger(__name__)


def get_db_connection():
    """Get MySQL database connection."""
    return pymysql.connect(
        charset='utf8mb4',
        cursorclass=pymysql.cursors.DictCursor,
        **get_db_params()
    )


def init_database():
    """Initialize database tables."""
    conn = get_db_connection()
    try:
        with conn.cursor() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS password_files (
                    credential_identifier VARBINARY(255) NOT NULL,
                    password_file VARBINARY(512) NOT NULL,
                    PRIMARY KEY (credential_identifier)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
            """)
        conn.commit()
        logger.info("database_initialized")
    finally:
        conn.close()


def store_password_file(credential_identifier: bytes, password_file: bytes):
    """
    Insert or wholesale-replace the password file for an identifier.

    Args:
        credential_identifier: server-side lookup key
        password_file: output of server_registration_finish
    """
    conn = get_db_connection()
    try:
        with conn.cursor() as cursor:
            cursor.execute(
                "REPLACE INTO password_files (credential_identifier, password_file) VALUES (%s, %s)",
                (credential_identifier, password_file)
            )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def load_password_file(credential_identifier: bytes) -> Optional[bytes]:
    """
    Fetch the password file for an identifier.

    Returns:
        password file bytes, or None if the identifier is not registered
    """
    conn = get_db_connection()
    try:
        with conn.cursor() as cursor:
            cursor.execute(
                "SELECT password_file FROM password_files WHERE credential_identifier = %s",
                (credential_identifier,)
            )
            result = cursor.fetchone()
            if result:
                return bytes(result['password_file'])
            return None
    finally:
        conn.close()


def delete_password_file(credential_identifier: bytes) -> bool:
    """Remove a password file. Returns True if a row was deleted."""
    conn = get_db_connection()
    try:
        with conn.cursor() as cursor:
            deleted = cursor.execute(
                "DELETE FROM password_files WHERE credential_identifier = %s",
                (credential_identifier,)
            )
        conn.commit()
        return deleted > 0
    finally:
        conn.close()


if __name__ == "__main__":
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--init":
        init_database()
