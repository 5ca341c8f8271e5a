"""
Tests para el almacenamiento local de XML
"""

import os
import shutil
import tempfile
import unittest
from unittest import mock

from afipws.core.exceptions import FileAccessError
from afipws.core.storage import LocalFileSystem


class TestLocalFileSystem(unittest.TestCase):

    def setUp(self):
        self.base_dir = tempfile.mkdtemp()
        self.fs = LocalFileSystem()
        self.path = os.path.join(self.base_dir, 'TA-30000000007-wsfe.xml')

    def tearDown(self):
        shutil.rmtree(self.base_dir)

    def test_put_and_get(self):
        self.fs.put(self.path, "<ta/>")

        self.assertTrue(self.fs.exists(self.path))
        self.assertEqual(self.fs.get(self.path), b"<ta/>")

    def test_put_overwrites(self):
        self.fs.put(self.path, b"<viejo/>")
        self.fs.put(self.path, b"<nuevo/>")

        self.assertEqual(self.fs.get(self.path), b"<nuevo/>")
        self.assertEqual(os.listdir(self.base_dir), ['TA-30000000007-wsfe.xml'])

    def test_failed_put_keeps_previous_content(self):
        """Si la escritura falla el archivo anterior queda intacto"""
        self.fs.put(self.path, b"<viejo/>")

        with mock.patch('afipws.core.storage.os.replace', side_effect=OSError("disco lleno")):
            with self.assertRaises(FileAccessError):
                self.fs.put(self.path, b"<nuevo/>")

        self.assertEqual(self.fs.get(self.path), b"<viejo/>")
        self.assertEqual(os.listdir(self.base_dir), ['TA-30000000007-wsfe.xml'])

    def test_get_missing(self):
        with self.assertRaises(FileAccessError) as ctx:
            self.fs.get(self.path)

        self.assertEqual(ctx.exception.path, self.path)

    def test_delete(self):
        self.fs.put(self.path, b"<ta/>")
        self.fs.delete(self.path)

        self.assertFalse(self.fs.exists(self.path))
        with self.assertRaises(FileAccessError):
            self.fs.delete(self.path)

    def test_make_directory(self):
        nested = os.path.join(self.base_dir, 'a', 'b')

        with self.assertRaises(FileAccessError):
            self.fs.make_directory(nested)

        self.fs.make_directory(nested, recursive=True)
        self.assertTrue(self.fs.is_directory(nested))
        self.assertFalse(self.fs.is_directory(self.path))

    def test_put_in_missing_directory(self):
        with self.assertRaises(FileAccessError):
            self.fs.put(os.path.join(self.base_dir, 'no', 'existe.xml'), b"<ta/>")


if __name__ == '__main__':
    unittest.main()
