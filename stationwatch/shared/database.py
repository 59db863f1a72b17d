"""Database configuration and record storage.

Raw station records are kept as JSON documents, one row per uplink. The
device id and receive time are copied into indexed columns so the common
dashboard queries (latest, since, per device, range) stay cheap.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pymysql
from pymysql.cursors import DictCursor

logger = logging.getLogger(__name__)

TABLE_NAME = "station_records"

SCHEMA_SQL = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id BIGINT AUTO_INCREMENT PRIMARY KEY,
        device_id VARCHAR(128) NOT NULL,
        received_at DATETIME(6) NULL,
        document JSON NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        INDEX idx_received_at (received_at),
        INDEX idx_device_received (device_id, received_at)
    )
"""


@dataclass
class DBConfig:
    """Database connection configuration."""
    host: str
    user: str
    password: str
    database: str

    @classmethod
    def from_env(cls) -> "DBConfig":
        """Create config from environment variables."""
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_DATABASE", "weather"),
        )


def _to_db_time(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC for DATETIME columns."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _record_device_id(record: Dict[str, Any]) -> str:
    ids = record.get("end_device_ids") or {}
    return str(ids.get("device_id") or record.get("device_id") or "")


class RecordStorage:
    """Manages storage and retrieval of raw station records in MySQL."""

    def __init__(self, db_config: DBConfig):
        """Initialize storage with database configuration.

        Args:
            db_config: Database connection configuration.
        """
        self.db_config = db_config
        self._connection: Optional[pymysql.Connection] = None

    def _get_connection(self) -> pymysql.Connection:
        """Get or create database connection."""
        if self._connection is None or not self._connection.open:
            self._connection = pymysql.connect(
                host=self.db_config.host,
                user=self.db_config.user,
                password=self.db_config.password,
                database=self.db_config.database,
                cursorclass=DictCursor,
            )
        return self._connection

    def ensure_schema(self) -> bool:
        """Create the records table if it does not exist."""
        conn = self._get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(SCHEMA_SQL)
            conn.commit()
            return True
        except Exception as e:
            logger.error(f"Error creating schema: {e}")
            return False

    def _rows_to_records(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        records = []
        for row in rows:
            document = row["document"]
            if isinstance(document, (bytes, str)):
                try:
                    document = json.loads(document)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    logger.warning(f"Skipping record {row.get('id')} with invalid JSON: {e}")
                    continue
            if not isinstance(document, dict):
                continue
            records.append({"id": str(row["id"]), **document})
        return records

    def _fetch(self, where_clause: str, params: List[Any], order: str, limit: Optional[int]) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        query = f"""
            SELECT id, document
            FROM {TABLE_NAME}
            WHERE {where_clause}
            ORDER BY received_at {order}
        """
        if limit is not None:
            query += " LIMIT %s"
            params = params + [limit]

        try:
            with conn.cursor() as cursor:
                cursor.execute(query, params)
                return self._rows_to_records(cursor.fetchall())
        except Exception as e:
            logger.error(f"Error fetching records: {e}")
            return []

    def store_record(self, record: Dict[str, Any], received_at: Optional[datetime] = None) -> Optional[str]:
        """Store a raw record.

        Args:
            record: The raw record document.
            received_at: Receive time to index the record under.

        Returns:
            The new record id, or None on failure.
        """
        conn = self._get_connection()
        record = {k: v for k, v in record.items() if k != "id"}
        try:
            with conn.cursor() as cursor:
                cursor.execute(
                    f"INSERT INTO {TABLE_NAME} (device_id, received_at, document) VALUES (%s, %s, %s)",
                    (_record_device_id(record), _to_db_time(received_at), json.dumps(record, default=str)),
                )
                record_id = cursor.lastrowid
            conn.commit()
            return str(record_id)
        except Exception as e:
            logger.error(f"Error storing record: {e}")
            conn.rollback()
            return None

    def update_record(self, record_id: str, record: Dict[str, Any]) -> bool:
        """Replace the document of an existing record.

        Returns:
            True if a row was updated, False otherwise.
        """
        conn = self._get_connection()
        record = {k: v for k, v in record.items() if k != "id"}
        try:
            with conn.cursor() as cursor:
                cursor.execute(
                    f"UPDATE {TABLE_NAME} SET device_id = %s, document = %s WHERE id = %s",
                    (_record_device_id(record), json.dumps(record, default=str), record_id),
                )
                updated = cursor.rowcount
            conn.commit()
            return updated > 0
        except Exception as e:
            logger.error(f"Error updating record {record_id}: {e}")
            conn.rollback()
            return False

    def delete_record(self, record_id: str) -> bool:
        """Delete a record by id.

        Returns:
            True if a row was deleted, False otherwise.
        """
        conn = self._get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(f"DELETE FROM {TABLE_NAME} WHERE id = %s", (record_id,))
                deleted = cursor.rowcount
            conn.commit()
            return deleted > 0
        except Exception as e:
            logger.error(f"Error deleting record {record_id}: {e}")
            conn.rollback()
            return False

    def find_latest_record_id(self, device_id: str) -> Optional[str]:
        """Get the id of the most recent record for a device."""
        records = self.get_device_records(device_id, limit=1)
        return records[0]["id"] if records else None

    def get_latest_records(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get the most recent records from all stations, newest first."""
        return self._fetch("1=1", [], "DESC", limit)

    def get_records_since(self, start_time: datetime, limit: int = 1000) -> List[Dict[str, Any]]:
        """Get records received at or after start_time, newest first."""
        return self._fetch("received_at >= %s", [_to_db_time(start_time)], "DESC", limit)

    def get_device_records(self, device_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Get the most recent records of one device, newest first."""
        return self._fetch("device_id = %s", [device_id], "DESC", limit)

    def get_historical_records(
        self,
        start_time: datetime,
        end_time: datetime,
        device_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Get records within a time range, oldest first.

        Args:
            start_time: Start of time range.
            end_time: End of time range.
            device_id: Filter by device.
        """
        conditions = ["received_at >= %s", "received_at <= %s"]
        params: List[Any] = [_to_db_time(start_time), _to_db_time(end_time)]

        if device_id:
            conditions.append("device_id = %s")
            params.append(device_id)

        return self._fetch(" AND ".join(conditions), params, "ASC", None)

    def close(self):
        """Close the database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
