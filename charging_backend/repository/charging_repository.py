"""Repository layer responsible for all database access."""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from charging_backend.domain.errors import StorageUnavailableError
from charging_backend.domain.models import ChargeStation, Connector, Group
from charging_backend.utils.config import Settings, get_settings
from charging_backend.utils.logger import get_logger


logger = get_logger(__name__)


class ChargingStore:
    """Reads and writes bound to one open connection (one unit of work).

    Lookups return ``None`` and deletes/updates return ``False`` when the
    target row does not exist.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    # --- groups ---

    def get_group(self, group_id: int) -> Optional[Group]:
        row = self._conn.execute(
            "SELECT id, name, capacity_in_amps FROM StationGroups WHERE id = ?;",
            (group_id,),
        ).fetchone()
        if row is None:
            return None
        return _group_from_row(row)

    def list_groups(self) -> List[Group]:
        rows = self._conn.execute(
            "SELECT id, name, capacity_in_amps FROM StationGroups ORDER BY id ASC;"
        ).fetchall()
        return [_group_from_row(row) for row in rows]

    def load_group_hierarchy(self, group_id: int) -> Optional[Group]:
        """Return the group with its stations and their connectors filled in."""
        group = self.get_group(group_id)
        if group is None:
            return None
        return Group(
            group_id=group.group_id,
            name=group.name,
            capacity_in_amps=group.capacity_in_amps,
            charge_stations=tuple(self.get_charge_stations_by_group(group_id)),
        )

    def insert_group(self, name: str, capacity_in_amps: int) -> Group:
        cursor = self._conn.execute(
            "INSERT INTO StationGroups (name, capacity_in_amps) VALUES (?, ?);",
            (name, capacity_in_amps),
        )
        return Group(
            group_id=int(cursor.lastrowid),
            name=name,
            capacity_in_amps=capacity_in_amps,
        )

    def update_group(self, group_id: int, name: str, capacity_in_amps: int) -> bool:
        cursor = self._conn.execute(
            "UPDATE StationGroups SET name = ?, capacity_in_amps = ? WHERE id = ?;",
            (name, capacity_in_amps, group_id),
        )
        return cursor.rowcount > 0

    def delete_group(self, group_id: int) -> bool:
        cursor = self._conn.execute("DELETE FROM StationGroups WHERE id = ?;", (group_id,))
        return cursor.rowcount > 0

    # --- charge stations ---

    def get_charge_station(self, station_id: int) -> Optional[ChargeStation]:
        row = self._conn.execute(
            "SELECT id, name, group_id FROM ChargeStations WHERE id = ?;",
            (station_id,),
        ).fetchone()
        if row is None:
            return None
        return self._with_connectors([row])[0]

    def list_charge_stations(self) -> List[ChargeStation]:
        rows = self._conn.execute(
            "SELECT id, name, group_id FROM ChargeStations ORDER BY id ASC;"
        ).fetchall()
        return self._with_connectors(rows)

    def get_charge_stations_by_group(self, group_id: int) -> List[ChargeStation]:
        rows = self._conn.execute(
            """
            SELECT id, name, group_id
            FROM ChargeStations
            WHERE group_id = ?
            ORDER BY id ASC;
            """,
            (group_id,),
        ).fetchall()
        return self._with_connectors(rows)

    def insert_charge_station(self, group_id: int, name: str) -> ChargeStation:
        cursor = self._conn.execute(
            "INSERT INTO ChargeStations (name, group_id) VALUES (?, ?);",
            (name, group_id),
        )
        return ChargeStation(station_id=int(cursor.lastrowid), name=name, group_id=group_id)

    def update_charge_station(self, station_id: int, group_id: int, name: str) -> bool:
        cursor = self._conn.execute(
            "UPDATE ChargeStations SET name = ?, group_id = ? WHERE id = ?;",
            (name, group_id, station_id),
        )
        return cursor.rowcount > 0

    def delete_charge_station(self, station_id: int) -> bool:
        cursor = self._conn.execute("DELETE FROM ChargeStations WHERE id = ?;", (station_id,))
        return cursor.rowcount > 0

    def delete_charge_stations_by_group(self, group_id: int) -> int:
        cursor = self._conn.execute(
            "DELETE FROM ChargeStations WHERE group_id = ?;",
            (group_id,),
        )
        return cursor.rowcount

    # --- connectors ---

    def get_connector(self, connector_id: int) -> Optional[Connector]:
        row = self._conn.execute(
            """
            SELECT id, charge_station_id, identifier, max_current_in_amps
            FROM Connectors
            WHERE id = ?;
            """,
            (connector_id,),
        ).fetchone()
        if row is None:
            return None
        return _connector_from_row(row)

    def list_connectors(self) -> List[Connector]:
        rows = self._conn.execute(
            """
            SELECT id, charge_station_id, identifier, max_current_in_amps
            FROM Connectors
            ORDER BY id ASC;
            """
        ).fetchall()
        return [_connector_from_row(row) for row in rows]

    def get_connectors_by_station(self, station_id: int) -> List[Connector]:
        rows = self._conn.execute(
            """
            SELECT id, charge_station_id, identifier, max_current_in_amps
            FROM Connectors
            WHERE charge_station_id = ?
            ORDER BY id ASC;
            """,
            (station_id,),
        ).fetchall()
        return [_connector_from_row(row) for row in rows]

    def insert_connector(
        self,
        charge_station_id: int,
        identifier: int,
        max_current_in_amps: int,
    ) -> Connector:
        cursor = self._conn.execute(
            """
            INSERT INTO Connectors (charge_station_id, identifier, max_current_in_amps)
            VALUES (?, ?, ?);
            """,
            (charge_station_id, identifier, max_current_in_amps),
        )
        return Connector(
            connector_id=int(cursor.lastrowid),
            charge_station_id=charge_station_id,
            identifier=identifier,
            max_current_in_amps=max_current_in_amps,
        )

    def update_connector(
        self,
        connector_id: int,
        charge_station_id: int,
        identifier: int,
        max_current_in_amps: int,
    ) -> bool:
        cursor = self._conn.execute(
            """
            UPDATE Connectors
            SET charge_station_id = ?, identifier = ?, max_current_in_amps = ?
            WHERE id = ?;
            """,
            (charge_station_id, identifier, max_current_in_amps, connector_id),
        )
        return cursor.rowcount > 0

    def delete_connector(self, connector_id: int) -> bool:
        cursor = self._conn.execute("DELETE FROM Connectors WHERE id = ?;", (connector_id,))
        return cursor.rowcount > 0

    def delete_connectors_by_station(self, station_id: int) -> int:
        cursor = self._conn.execute(
            "DELETE FROM Connectors WHERE charge_station_id = ?;",
            (station_id,),
        )
        return cursor.rowcount

    def delete_connectors_by_group(self, group_id: int) -> int:
        cursor = self._conn.execute(
            """
            DELETE FROM Connectors
            WHERE charge_station_id IN (
                SELECT id FROM ChargeStations WHERE group_id = ?
            );
            """,
            (group_id,),
        )
        return cursor.rowcount

    # --- diagnostics ---

    def count_rows(self, table: str) -> int:
        if table not in _TABLES:
            raise ValueError(f"Unknown table: {table}")
        row = self._conn.execute(f"SELECT COUNT(*) AS count FROM {table};").fetchone()
        return int(row["count"])

    def _with_connectors(self, station_rows: Sequence[sqlite3.Row]) -> List[ChargeStation]:
        if not station_rows:
            return []
        station_ids = [int(row["id"]) for row in station_rows]
        placeholders = ",".join("?" for _ in station_ids)
        connector_rows = self._conn.execute(
            f"""
            SELECT id, charge_station_id, identifier, max_current_in_amps
            FROM Connectors
            WHERE charge_station_id IN ({placeholders})
            ORDER BY id ASC;
            """,
            tuple(station_ids),
        ).fetchall()
        connectors_by_station: dict[int, list[Connector]] = defaultdict(list)
        for row in connector_rows:
            connector = _connector_from_row(row)
            connectors_by_station[connector.charge_station_id].append(connector)
        return [
            ChargeStation(
                station_id=int(row["id"]),
                name=str(row["name"]),
                group_id=int(row["group_id"]),
                connectors=tuple(connectors_by_station.get(int(row["id"]), ())),
            )
            for row in station_rows
        ]


_TABLES = ("StationGroups", "ChargeStations", "Connectors")


def _group_from_row(row: sqlite3.Row) -> Group:
    return Group(
        group_id=int(row["id"]),
        name=str(row["name"]),
        capacity_in_amps=int(row["capacity_in_amps"]),
    )


def _connector_from_row(row: sqlite3.Row) -> Connector:
    return Connector(
        connector_id=int(row["id"]),
        charge_station_id=int(row["charge_station_id"]),
        identifier=int(row["identifier"]),
        max_current_in_amps=int(row["max_current_in_amps"]),
    )


class ChargingRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_timeout_seconds,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def transaction(self, readonly: bool = False) -> Iterator[ChargingStore]:
        """Run one read-validate-write unit against a single connection.

        Write transactions start with ``BEGIN IMMEDIATE`` so the database
        write lock is held from the first read until commit. Any exception
        rolls the unit back; SQLite failures surface as
        ``StorageUnavailableError``.
        """
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Database unavailable: {exc}") from exc
        try:
            conn.execute("BEGIN;" if readonly else "BEGIN IMMEDIATE;")
            yield ChargingStore(conn)
            conn.execute("COMMIT;")
        except sqlite3.Error as exc:
            _rollback_if_active(conn)
            raise StorageUnavailableError(f"Database operation failed: {exc}") from exc
        except BaseException:
            _rollback_if_active(conn)
            raise
        finally:
            conn.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            conn = self._connect()
            try:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS StationGroups (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL CHECK (length(trim(name)) > 0),
                        capacity_in_amps INTEGER NOT NULL CHECK (capacity_in_amps > 0),
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS ChargeStations (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL CHECK (length(trim(name)) > 0),
                        group_id INTEGER NOT NULL,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (group_id) REFERENCES StationGroups(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Connectors (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        charge_station_id INTEGER NOT NULL,
                        identifier INTEGER NOT NULL CHECK (identifier BETWEEN 1 AND 5),
                        max_current_in_amps INTEGER NOT NULL CHECK (max_current_in_amps > 0),
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (charge_station_id) REFERENCES ChargeStations(id)
                    );
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_charge_stations_group
                    ON ChargeStations(group_id);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_connectors_station
                    ON Connectors(charge_station_id);
                    """
                )
            finally:
                conn.close()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Database initialization failed: {exc}") from exc

    def seed_demo_hierarchy(self) -> bool:
        """Insert a small demo hierarchy only when no groups exist yet."""
        demo = [
            ("Depot North", 100, "North Station", [(1, 32), (2, 32)]),
            ("Depot South", 250, "South Station", [(1, 63), (2, 63), (3, 32)]),
        ]
        with self.transaction() as store:
            if store.count_rows("StationGroups") > 0:
                logger.info("Demo hierarchy already present; skipping seed")
                return False
            for group_name, capacity, station_name, connectors in demo:
                group = store.insert_group(group_name, capacity)
                station = store.insert_charge_station(group.group_id, station_name)
                for identifier, max_current in connectors:
                    store.insert_connector(station.station_id, identifier, max_current)
        logger.info("Demo hierarchy seeded with %s groups", len(demo))
        return True

    def list_groups(self) -> List[Group]:
        with self.transaction(readonly=True) as store:
            return store.list_groups()

    def list_charge_stations(self) -> List[ChargeStation]:
        with self.transaction(readonly=True) as store:
            return store.list_charge_stations()

    def list_connectors(self) -> List[Connector]:
        with self.transaction(readonly=True) as store:
            return store.list_connectors()

    def load_group_hierarchy(self, group_id: int) -> Optional[Group]:
        with self.transaction(readonly=True) as store:
            return store.load_group_hierarchy(group_id)

    def count_groups(self) -> int:
        with self.transaction(readonly=True) as store:
            return store.count_rows("StationGroups")

    def count_charge_stations(self) -> int:
        with self.transaction(readonly=True) as store:
            return store.count_rows("ChargeStations")

    def count_connectors(self) -> int:
        with self.transaction(readonly=True) as store:
            return store.count_rows("Connectors")


def _rollback_if_active(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        conn.execute("ROLLBACK;")
