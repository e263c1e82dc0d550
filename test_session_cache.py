#!/usr/bin/env python3
"""
Tests for the sqlite session cache.
"""

import os
import sqlite3
import sys
import tempfile
import unittest
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import database


class TestSessionCache(unittest.TestCase):
    """Token and user record persistence."""

    def setUp(self):
        """Point the cache at a throwaway database file."""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.original_path = database.DB_PATH
        database.DB_PATH = os.path.join(self.tmpdir.name, "test_session.db")
        database.init_db()

    def tearDown(self):
        database.DB_PATH = self.original_path
        self.tmpdir.cleanup()

    def test_empty_cache(self):
        self.assertIsNone(database.get_access_token())
        self.assertIsNone(database.get_refresh_token())
        self.assertIsNone(database.get_user_data())

    def test_tokens_round_trip_and_overwrite(self):
        database.save_tokens("access-1", "refresh-1")
        database.save_tokens("access-2")
        self.assertEqual(database.get_access_token(), "access-2")
        self.assertEqual(database.get_refresh_token(), "refresh-1")

    def test_user_record(self):
        user = {"_id": "u1", "role": "Teacher", "permissions": [{"name": "attendance.mark"}]}
        database.save_user_data(user)
        self.assertEqual(database.get_user_data(), user)

    def test_clear_tokens_removes_everything(self):
        database.save_tokens("a", "r")
        database.save_user_data({"_id": "u1"})
        database.clear_tokens()
        self.assertIsNone(database.get_access_token())
        self.assertIsNone(database.get_refresh_token())
        self.assertIsNone(database.get_user_data())

    def test_reads_before_init_return_none(self):
        database.DB_PATH = os.path.join(self.tmpdir.name, "never_initialised.db")
        self.assertIsNone(database.get_access_token())
        database.clear_tokens()

    def test_connection_closed_when_write_fails(self):
        conn = Mock()
        conn.cursor.return_value.execute.side_effect = sqlite3.IntegrityError("NOT NULL constraint failed")
        with patch.object(database, 'get_db_connection', return_value=conn):
            with self.assertRaises(sqlite3.IntegrityError):
                database.save_tokens(None)
        conn.close.assert_called_once_with()

    def test_connection_closed_when_read_fails(self):
        conn = Mock()
        conn.cursor.return_value.execute.side_effect = sqlite3.OperationalError("no such table")
        with patch.object(database, 'get_db_connection', return_value=conn):
            self.assertIsNone(database.get_access_token())
        conn.close.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
