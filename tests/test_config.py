import unittest

from sysbus_toolkit.config import Settings


class TestSettings(unittest.TestCase):

    def test_defaults(self):
        settings = Settings.from_env({})
        self.assertEqual(settings.job_timeout, 5.0)
        self.assertEqual(settings.signal_buffer, 20)
        self.assertEqual(settings.overflow_policy, "drop_oldest")
        self.assertEqual(settings.api_port, 3000)
        self.assertEqual(settings.wifi_iface, "wlan0")

    def test_overrides(self):
        settings = Settings.from_env({
            "SYSBUS_JOB_TIMEOUT": "2.5",
            "SYSBUS_SIGNAL_BUFFER": "50",
            "SYSBUS_OVERFLOW_POLICY": "BLOCK",
            "SYSBUS_LOG_LEVEL": "debug",
        })
        self.assertEqual(settings.job_timeout, 2.5)
        self.assertEqual(settings.signal_buffer, 50)
        self.assertEqual(settings.overflow_policy, "block")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values_name_the_variable(self):
        for env in ({"SYSBUS_JOB_TIMEOUT": "x"}, {"SYSBUS_JOB_TIMEOUT": "-1"},
                    {"SYSBUS_SIGNAL_BUFFER": "1.5"}, {"SYSBUS_OVERFLOW_POLICY": "explode"}):
            with self.subTest(env=env):
                with self.assertRaises(ValueError) as ctx:
                    Settings.from_env(env)
                self.assertIn(next(iter(env)), str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
