#!/usr/bin/env python

"""Unittests for the sccall log sink.

"""

import tempfile
import unittest
from pathlib import Path
from loguru import logger
from sccall.core.logger_setup import set_log_level, subcluster_logger
from sccall.schema.pileup import PosData, empty_pileup
from sccall.filtering import filter_positions


class TestLoggerSetup(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.log_file = Path(self.tmpdir.name) / "logs" / "sccall.txt"

    def tearDown(self):
        set_log_level("INFO")
        self.tmpdir.cleanup()

    def read_log(self):
        # replacing the sink flushes and closes the file
        set_log_level("WARNING")
        return self.log_file.read_text(encoding="utf-8")

    def test_only_sccall_records(self):
        set_log_level("INFO", log_file=self.log_file)
        logger.info("from another package")
        logger.bind(name="sccall").info("from sccall")
        text = self.read_log()
        self.assertIn("from sccall", text)
        self.assertNotIn("from another package", text)

    def test_level(self):
        set_log_level("info", log_file=self.log_file)
        logger.bind(name="sccall").debug("hidden detail")
        logger.bind(name="sccall").warning("shown warning")
        text = self.read_log()
        self.assertNotIn("hidden detail", text)
        self.assertIn("shown warning", text)

    def test_subcluster_context(self):
        set_log_level("DEBUG", log_file=self.log_file)
        subcluster_logger("").info("top level")
        pileup = empty_pileup()
        for pos in range(4):
            pileup[0].append(PosData(pos, [0, 1], [[20, 0, 0, 0], [0, 20, 0, 0]]))
        filter_positions(pileup, [0, 1], [0, 1], "AB", 0.001, 2)
        lines = self.read_log().splitlines()

        self.assertTrue(any("[root] top level" in i for i in lines))
        kept = [i for i in lines if "kept 4/4" in i]
        self.assertEqual(len(kept), 1)
        self.assertIn("[AB] ", kept[0])
        self.assertIn("sccall.filtering.position_filter", kept[0])
        # slice records come from the worker threads
        workers = [i for i in lines if "[AB ThreadPoolExecutor" in i]
        self.assertEqual(len(workers), 2)


if __name__ == "__main__":
    unittest.main()
