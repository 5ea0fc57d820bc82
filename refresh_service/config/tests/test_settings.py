from unittest import TestCase

from ..settings import Settings


class TestSettings(TestCase):
    def setUp(self):
        self.values = {"server.host": "localhost", "server.port": 8002}
        self.settings = Settings(self.values)

    def test_settings_init(self):
        """Test settings initialization."""
        for key, value in self.values.items():
            assert key in self.settings
            assert self.settings[key] == value
        assert len(self.settings) == 2
        assert list(self.settings) == ["server.host", "server.port"]
        assert len(Settings()) == 0

    def test_values_are_copied(self):
        self.values["server.port"] = 9000
        assert self.settings["server.port"] == 8002

    def test_get_value(self):
        assert self.settings.get_value("server.port") == 8002
        assert self.settings.get_value("missing", "server.host") == "localhost"
        assert self.settings.get_value("missing", default=1) == 1
        assert self.settings.get("missing") is None

    def test_getitem(self):
        with self.assertRaises(KeyError):
            self.settings["missing"]
        with self.assertRaises(TypeError):
            self.settings[0]
