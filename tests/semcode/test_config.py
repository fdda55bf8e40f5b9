"""
Unit tests for bridge configuration.
"""

import os
import shutil
import tempfile
import unittest

from src.semcode.config import BridgeConfig, default_server_command


class TestBridgeConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_defaults(self):
        config = BridgeConfig.load(environ={})

        self.assertEqual(config.project_root, os.getcwd())
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.server_command[-1], "--stdio")

    def test_environment(self):
        config = BridgeConfig.load(environ={
            "SEMCODE_PROJECT_ROOT": self.temp_dir,
            "SEMCODE_LSP_COMMAND": "pylsp --log-file '/tmp/my logs/pylsp.log'",
            "LOG_LEVEL": "debug",
        })

        self.assertEqual(config.project_root, self.temp_dir)
        self.assertEqual(config.server_command, ["pylsp", "--log-file", "/tmp/my logs/pylsp.log"])
        self.assertEqual(config.log_level, "DEBUG")

    def test_arguments_override_environment(self):
        config = BridgeConfig.load(
            project_root=self.temp_dir,
            lsp_command="pyright-langserver --stdio",
            log_level="warning",
            environ={"SEMCODE_PROJECT_ROOT": "/elsewhere", "SEMCODE_LSP_COMMAND": "pylsp"},
        )

        self.assertEqual(config.project_root, self.temp_dir)
        self.assertEqual(config.server_command, ["pyright-langserver", "--stdio"])
        self.assertEqual(config.log_level, "WARNING")

    def test_relative_root_made_absolute(self):
        config = BridgeConfig(project_root=".")
        self.assertEqual(config.project_root, os.getcwd())

    def test_project_local_server_preferred(self):
        self.assertEqual(
            default_server_command(self.temp_dir),
            ["typescript-language-server", "--stdio"],
        )

        bin_dir = os.path.join(self.temp_dir, "node_modules", ".bin")
        os.makedirs(bin_dir)
        local = os.path.join(bin_dir, "typescript-language-server")
        with open(local, "w") as f:
            f.write("#!/bin/sh\n")

        self.assertEqual(default_server_command(self.temp_dir), [local, "--stdio"])


if __name__ == "__main__":
    unittest.main()
