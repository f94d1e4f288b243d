import importlib.metadata
import unittest

import gershell


class VersionTests(unittest.TestCase):
    def test_version_matches_metadata(self) -> None:
        meta_version = importlib.metadata.version("gershell")
        self.assertEqual(gershell.__version__, meta_version)


if __name__ == "__main__":
    unittest.main()
