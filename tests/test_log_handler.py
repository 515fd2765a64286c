import logging

from n1vocab.database import get_db_connection, init_db
from n1vocab.log_handler import SQLiteHandler


def test_sqlite_handler_stores_records(tmp_path):
    db_path = str(tmp_path / "logs.db")
    init_db(db_path)

    logger = logging.getLogger("n1vocab.test_log_handler")
    handler = SQLiteHandler(db_path=db_path)
    handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
    logger.addHandler(handler)
    try:
        logger.warning("Failed to generate example for 曖昧")
    finally:
        logger.removeHandler(handler)

    conn = get_db_connection(db_path)
    rows = conn.execute("SELECT level, logger, message FROM logs").fetchall()
    conn.close()
    assert [tuple(row) for row in rows] == [
        ("WARNING", "n1vocab.test_log_handler", "WARNING - Failed to generate example for 曖昧")
    ]
