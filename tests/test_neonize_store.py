import logging
import sqlite3

import pytest

from anvbot.adapters import neonize as neonize_adapter
from anvbot.config import DBDialect
from anvbot.domain import JID
from anvbot.errors import StoreError

log = logging.getLogger("test.store")


def test_missing_database_yields_unpaired_device(tmp_path):
    store = neonize_adapter.NeonizeStore(DBDialect.SQLITE3, f"file:{tmp_path / 'anv.db'}?_foreign_keys=on", log, "AnvBot")
    assert store.get_first_device().is_paired is False
    assert store.database == str(tmp_path / "anv.db")


def test_first_device_read_from_whatsmeow_table(tmp_path):
    db = tmp_path / "anv.db"
    with sqlite3.connect(db) as conn:
        conn.execute("CREATE TABLE whatsmeow_device (jid TEXT PRIMARY KEY, push_name TEXT)")
        conn.execute("INSERT INTO whatsmeow_device VALUES ('6281234567890:12@s.whatsapp.net', 'Bot')")

    device = neonize_adapter.NeonizeStore(DBDialect.SQLITE3, str(db), log, "AnvBot").get_first_device()

    assert device.jid == JID(user="6281234567890", server="s.whatsapp.net")
    assert device.push_name == "Bot"


def test_open_store_rejects_missing_directory(tmp_path):
    adapter = neonize_adapter.NeonizeAdapter()
    with pytest.raises(StoreError):
        adapter.open_store("sqlite3", f"file:{tmp_path / 'nope' / 'anv.db'}?_foreign_keys=on", log)


def test_open_store_requires_postgres_dsn():
    with pytest.raises(StoreError):
        neonize_adapter.NeonizeAdapter().open_store("postgres", "anv.db", log)
