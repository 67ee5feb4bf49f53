# Database schema and utilities for FocusFlow

from pathlib import Path
from typing import Optional

import duckdb

DB_PATH = Path(__file__).parent.parent / 'storage' / 'focusflow.db'

# Instants are stored as naive UTC TIMESTAMPs. planned_tasks is updated in
# place, so it carries no secondary index.
SCHEMA_QUERIES = [
    '''
    CREATE TABLE IF NOT EXISTS user_profiles (
        uid VARCHAR PRIMARY KEY,
        email VARCHAR,
        display_name VARCHAR,
        photo_url VARCHAR,
        core_tasks_set BOOLEAN DEFAULT FALSE,
        reminder_times VARCHAR -- JSON array of HH:MM strings
    );
    ''',
    '''
    CREATE TABLE IF NOT EXISTS core_tasks (
        user_id VARCHAR NOT NULL,
        id VARCHAR NOT NULL,
        position INTEGER NOT NULL,
        name VARCHAR NOT NULL,
        color VARCHAR
    );
    ''',
    'CREATE INDEX IF NOT EXISTS idx_core_tasks_user ON core_tasks(user_id);',
    '''
    CREATE TABLE IF NOT EXISTS planned_tasks (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        date DATE NOT NULL,
        start_time VARCHAR NOT NULL,
        end_time VARCHAR NOT NULL,
        core_task_id VARCHAR NOT NULL,
        title VARCHAR,
        description TEXT
    );
    ''',
    '''
    CREATE TABLE IF NOT EXISTS task_logs (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        timestamp TIMESTAMP NOT NULL,
        core_task_id VARCHAR NOT NULL,
        focus_level INTEGER,
        energy_input TEXT,
        energy_category VARCHAR,
        duration_minutes DOUBLE
    );
    ''',
    'CREATE INDEX IF NOT EXISTS idx_task_logs_user_timestamp ON task_logs(user_id, timestamp);',
]


def get_connection(db_path: Optional[Path] = None):
    path = Path(db_path) if db_path is not None else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path))


def init_database(db_path: Optional[Path] = None):
    with get_connection(db_path) as conn:
        for query in SCHEMA_QUERIES:
            conn.execute(query)
