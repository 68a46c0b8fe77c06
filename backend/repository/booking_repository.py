"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Iterator, List, Optional

from backend.domain.models import (
    Booking,
    BookingStatus,
    CreateBookingResult,
    CreateBookingStatus,
    Room,
    RoomStatus,
    User,
)
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class StorageError(Exception):
    """Raised when the underlying SQLite store fails."""


_BOOKING_SELECT = """
    SELECT
        b.id,
        b.room_id,
        b.user_id,
        b.date,
        b.start_time,
        b.end_time,
        b.access_code,
        b.status,
        b.created_at,
        r.name AS room_name,
        u.username AS username
    FROM bookings AS b
    LEFT JOIN rooms AS r ON r.id = b.room_id
    LEFT JOIN users AS u ON u.id = b.user_id
"""


def _row_to_booking(row: sqlite3.Row) -> Booking:
    return Booking(
        booking_id=int(row["id"]),
        room_id=int(row["room_id"]),
        user_id=int(row["user_id"]),
        date=str(row["date"]),
        start_time=str(row["start_time"]),
        end_time=str(row["end_time"]),
        access_code=str(row["access_code"]),
        status=BookingStatus(row["status"]),
        created_at=row["created_at"],
        room_name=row["room_name"],
        username=row["username"],
    )


def _row_to_room(row: sqlite3.Row) -> Room:
    return Room(
        room_id=int(row["id"]),
        name=str(row["name"]),
        status=RoomStatus(row["status"]),
        image_url=row["image_url"],
        created_at=row["created_at"],
    )


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=int(row["id"]),
        username=str(row["username"]),
        password_hash=str(row["password"]),
        email=row["email"],
    )


class BookingRepository:
    """Single writer for rooms, users and bookings.

    Every sqlite3 failure leaves this class as StorageError. Booking creation
    is the only multi-statement write and runs as one IMMEDIATE transaction
    under a per-room lock.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._locks_guard = Lock()
        self._booking_locks: dict[int, Lock] = {}

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            connection = sqlite3.connect(
                self._db_path,
                timeout=self._settings.sqlite_timeout_seconds,
                isolation_level=None,
            )
        except sqlite3.Error as exc:
            raise StorageError(f"Could not open database: {exc}") from exc
        connection.row_factory = sqlite3.Row
        try:
            connection.execute("PRAGMA foreign_keys = ON;")
            yield connection
        except sqlite3.Error as exc:
            raise StorageError(f"Database operation failed: {exc}") from exc
        finally:
            connection.close()

    @contextmanager
    def _transaction(self, conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
        conn.execute("BEGIN IMMEDIATE;")
        try:
            yield conn
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK;")
            raise
        conn.execute("COMMIT;")

    def _booking_lock(self, room_id: int) -> Lock:
        with self._locks_guard:
            return self._booking_locks.setdefault(room_id, Lock())

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        with self._connection() as conn:
            conn.execute("PRAGMA journal_mode = WAL;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT UNIQUE NOT NULL,
                    password TEXT NOT NULL,
                    email TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS rooms (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'available'
                        CHECK (status IN ('available', 'occupied')),
                    image_url TEXT,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS bookings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    room_id INTEGER NOT NULL,
                    date TEXT NOT NULL,
                    start_time TEXT NOT NULL,
                    end_time TEXT NOT NULL,
                    access_code TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'active'
                        CHECK (status IN ('active', 'cancelled')),
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    CHECK (start_time < end_time),
                    FOREIGN KEY (user_id) REFERENCES users(id),
                    FOREIGN KEY (room_id) REFERENCES rooms(id)
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_bookings_room_date_status
                ON bookings(room_id, date, status);
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_bookings_user
                ON bookings(user_id);
                """
            )
        logger.info("Database initialized at %s", self._db_path)

    def seed_default_data(self, admin_password_hash: str) -> None:
        """Insert default rooms and the admin user only when tables are empty."""
        with self._connection() as conn, self._transaction(conn):
            user_count = int(conn.execute("SELECT COUNT(*) AS count FROM users;").fetchone()["count"])
            if user_count == 0:
                conn.execute(
                    "INSERT INTO users (username, password) VALUES (?, ?);",
                    (self._settings.default_admin_username, admin_password_hash),
                )
                logger.info(
                    "Default admin user '%s' created",
                    self._settings.default_admin_username,
                )

            room_count = int(conn.execute("SELECT COUNT(*) AS count FROM rooms;").fetchone()["count"])
            if room_count == 0:
                conn.executemany(
                    "INSERT INTO rooms (name, image_url) VALUES (?, ?);",
                    self._settings.default_rooms,
                )
                logger.info("Inserted %s default rooms", len(self._settings.default_rooms))
            else:
                logger.info("Found %s existing rooms; skipping room seed", room_count)

    # Rooms

    def list_rooms(self) -> List[Room]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT id, name, status, image_url, created_at FROM rooms ORDER BY id ASC;"
            ).fetchall()
        return [_row_to_room(row) for row in rows]

    def get_room(self, room_id: int) -> Optional[Room]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, name, status, image_url, created_at FROM rooms WHERE id = ?;",
                (room_id,),
            ).fetchone()
        if row is None:
            return None
        return _row_to_room(row)

    def set_room_status(self, room_id: int, status: RoomStatus) -> bool:
        """Return False when no room has that id."""
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE rooms SET status = ? WHERE id = ?;",
                (status.value, room_id),
            )
            return cursor.rowcount > 0

    # Users

    def create_user(
        self,
        username: str,
        password_hash: str,
        email: Optional[str] = None,
    ) -> User:
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO users (username, password, email) VALUES (?, ?, ?);",
                (username, password_hash, email),
            )
            return User(
                user_id=int(cursor.lastrowid),
                username=username,
                password_hash=password_hash,
                email=email,
            )

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, username, password, email FROM users WHERE username = ?;",
                (username,),
            ).fetchone()
        return None if row is None else _row_to_user(row)

    # Bookings

    def create_booking(
        self,
        *,
        room_id: int,
        date: str,
        start_time: str,
        end_time: str,
        user_id: int,
        access_code: str,
    ) -> CreateBookingResult:
        """Check for an overlapping active booking and insert in one critical section.

        Times must already be normalized HH:MM text (end of day as 24:00) so
        that string comparison matches clock order.
        """
        with self._booking_lock(room_id):
            with self._connection() as conn, self._transaction(conn):
                room = conn.execute(
                    "SELECT id FROM rooms WHERE id = ?;",
                    (room_id,),
                ).fetchone()
                if room is None:
                    return CreateBookingResult(status=CreateBookingStatus.ROOM_NOT_FOUND)

                user = conn.execute(
                    "SELECT id FROM users WHERE id = ?;",
                    (user_id,),
                ).fetchone()
                if user is None:
                    return CreateBookingResult(status=CreateBookingStatus.USER_NOT_FOUND)

                conflict = conn.execute(
                    """
                    SELECT id
                    FROM bookings
                    WHERE room_id = ?
                      AND date = ?
                      AND status = 'active'
                      AND start_time < ?
                      AND ? < end_time
                    ORDER BY start_time ASC
                    LIMIT 1;
                    """,
                    (room_id, date, end_time, start_time),
                ).fetchone()
                if conflict is not None:
                    return CreateBookingResult(
                        status=CreateBookingStatus.CONFLICT,
                        conflicting_booking_id=int(conflict["id"]),
                    )

                cursor = conn.execute(
                    """
                    INSERT INTO bookings (
                        user_id,
                        room_id,
                        date,
                        start_time,
                        end_time,
                        access_code
                    )
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    (user_id, room_id, date, start_time, end_time, access_code),
                )
                row = conn.execute(
                    _BOOKING_SELECT + " WHERE b.id = ?;",
                    (cursor.lastrowid,),
                ).fetchone()
                return CreateBookingResult(
                    status=CreateBookingStatus.CREATED,
                    booking=_row_to_booking(row),
                )

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with self._connection() as conn:
            row = conn.execute(_BOOKING_SELECT + " WHERE b.id = ?;", (booking_id,)).fetchone()
        return None if row is None else _row_to_booking(row)

    def list_bookings_for_room_and_date(self, room_id: int, date: str) -> List[Booking]:
        """Active bookings of one room/day in start_time order."""
        with self._connection() as conn:
            rows = conn.execute(
                _BOOKING_SELECT
                + """
                WHERE b.room_id = ? AND b.date = ? AND b.status = 'active'
                ORDER BY b.start_time ASC, b.id ASC;
                """,
                (room_id, date),
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def list_all_bookings(self) -> List[Booking]:
        with self._connection() as conn:
            rows = conn.execute(
                _BOOKING_SELECT + " ORDER BY b.created_at DESC, b.id DESC;"
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def list_bookings_for_user(self, user_id: int) -> List[Booking]:
        with self._connection() as conn:
            rows = conn.execute(
                _BOOKING_SELECT
                + " WHERE b.user_id = ? ORDER BY b.date DESC, b.start_time DESC, b.id DESC;",
                (user_id,),
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def list_bookings_for_date(self, date: str) -> List[Booking]:
        with self._connection() as conn:
            rows = conn.execute(
                _BOOKING_SELECT + " WHERE b.date = ? ORDER BY b.created_at DESC, b.id DESC;",
                (date,),
            ).fetchall()
        return [_row_to_booking(row) for row in rows]

    def cancel_booking(self, booking_id: int, user_id: int) -> bool:
        """Soft-cancel; matches on id and owner only, so repeats still succeed."""
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE bookings SET status = 'cancelled' WHERE id = ? AND user_id = ?;",
                (booking_id, user_id),
            )
            return cursor.rowcount > 0

    def find_active_booking_for_unlock(
        self,
        room_id: int,
        access_code: str,
        date: str,
        now_time: str,
    ) -> Optional[Booking]:
        with self._connection() as conn:
            row = conn.execute(
                _BOOKING_SELECT
                + """
                WHERE b.room_id = ?
                  AND b.access_code = ?
                  AND b.status = 'active'
                  AND b.date = ?
                  AND b.start_time <= ?
                  AND ? < b.end_time
                ORDER BY b.created_at DESC, b.id DESC
                LIMIT 1;
                """,
                (room_id, access_code, date, now_time, now_time),
            ).fetchone()
        return None if row is None else _row_to_booking(row)

    def find_current_booking(
        self,
        room_id: int,
        date: str,
        now_time: str,
    ) -> Optional[Booking]:
        with self._connection() as conn:
            row = conn.execute(
                _BOOKING_SELECT
                + """
                WHERE b.room_id = ?
                  AND b.status = 'active'
                  AND b.date = ?
                  AND b.start_time <= ?
                  AND ? < b.end_time
                ORDER BY b.created_at DESC, b.id DESC
                LIMIT 1;
                """,
                (room_id, date, now_time, now_time),
            ).fetchone()
        return None if row is None else _row_to_booking(row)

    # Administrative bulk operations

    def clear_all_bookings(self) -> int:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM bookings;")
            deleted = cursor.rowcount
        logger.warning("Cleared %s bookings", deleted)
        return deleted

    def reset_to_defaults(self, admin_password_hash: str) -> int:
        """Delete bookings and users, free every room, re-create the admin user."""
        with self._connection() as conn, self._transaction(conn):
            deleted = conn.execute("DELETE FROM bookings;").rowcount
            deleted += conn.execute("DELETE FROM users;").rowcount
            conn.execute("UPDATE rooms SET status = 'available';")
            conn.execute(
                "INSERT INTO users (username, password) VALUES (?, ?);",
                (self._settings.default_admin_username, admin_password_hash),
            )
        logger.warning("Database reset to defaults; deleted %s records", deleted)
        return deleted
