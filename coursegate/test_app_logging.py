"""Tests for :mod:`coursegate.app_logging`."""

from unittest import TestCase
import io
import json
import logging

from pythonjsonlogger.json import JsonFormatter

from coursegate.app_logging import setup_logging


class TestSetupLogging(TestCase):
    """One handler on the root logger, JSON by default."""

    def setUp(self):
        """Keep the root logger as it was."""
        self.root = logging.getLogger()
        self.handlers = list(self.root.handlers)
        self.level = self.root.level

    def tearDown(self):
        """Restore the root logger."""
        self.root.handlers = self.handlers
        self.root.setLevel(self.level)

    def _ours(self):
        return [h for h in self.root.handlers
                if getattr(h, '_coursegate', False)]

    def test_json_record(self):
        """Records are JSON, with ``timestamp`` and ``level`` fields."""
        setup_logging('DEBUG')
        handler, = self._ours()
        self.assertIsInstance(handler.formatter, JsonFormatter)
        stream = io.StringIO()
        handler.setStream(stream)
        logging.getLogger('coursegate.test').info('hello %s', 'there')
        record = json.loads(stream.getvalue())
        self.assertEqual(record['message'], 'hello there')
        self.assertEqual(record['level'], 'INFO')
        self.assertEqual(record['name'], 'coursegate.test')
        self.assertIn('timestamp', record)
        self.assertEqual(self.root.level, logging.DEBUG)

    def test_setup_twice(self):
        """Calling setup again replaces the handler instead of adding one."""
        setup_logging(json=False)
        setup_logging('10', json=False)
        handler, = self._ours()
        self.assertNotIsInstance(handler.formatter, JsonFormatter)
        self.assertEqual(self.root.level, logging.DEBUG)
