import unittest

from sysbus_toolkit.core.decoders import (
    DeviceStateChange,
    JobRemoved,
    ManagerStateChange,
    body_matches,
    decode_device_state_change,
    decode_job_removed,
    decode_manager_state_change,
    decode_path_list,
    decode_string,
    decode_uint32,
)
from sysbus_toolkit.core.states import (
    JobResult,
    NMConnectivity,
    NMDeviceState,
    NMState,
    UnitActiveState,
)
from sysbus_toolkit.errors import DecodeError
from sysbus_toolkit.infra.transport import RawNotification


def note(*body, signature=None):
    return RawNotification("/p", "org.example", "Sig", signature, tuple(body))


class TestSignalDecoders(unittest.TestCase):

    def test_device_state_change(self):
        rec = decode_device_state_change(note(100, 70, 0, signature="uuu"))
        self.assertEqual(rec, DeviceStateChange(100, 70, 0))
        self.assertIs(rec.new, NMDeviceState.ACTIVATED)
        self.assertIs(rec.old, NMDeviceState.IP_CONFIG)

    def test_device_state_change_rejects_short_body(self):
        self.assertIsNone(decode_device_state_change(note(100, 70)))

    def test_manager_state_change(self):
        rec = decode_manager_state_change(note(70))
        self.assertEqual(rec, ManagerStateChange(70))
        self.assertIs(rec.value, NMState.CONNECTED_GLOBAL)

    def test_manager_state_change_rejects_string(self):
        self.assertIsNone(decode_manager_state_change(note("70")))

    def test_job_removed(self):
        rec = decode_job_removed(note(1, "/job/7", "demo", "done", signature="uoss"))
        self.assertEqual(rec, JobRemoved(1, "/job/7", "demo", "done"))
        self.assertIs(rec.outcome, JobResult.DONE)

    def test_job_removed_wrong_signature(self):
        self.assertIsNone(decode_job_removed(note(1, "/job/7", "demo", "done", signature="usss")))

    def test_job_removed_non_string_result(self):
        self.assertIsNone(decode_job_removed(note(1, "/job/7", "demo", 3)))

    def test_decoders_check_declared_signatures(self):
        self.assertIsNone(decode_device_state_change(note(100, 70, 0, signature="uui")))
        self.assertIsNone(decode_manager_state_change(note(70, signature="i")))
        self.assertIsNotNone(decode_manager_state_change(note(70, signature="u")))

    def test_body_matches_uses_signature_prefix(self):
        self.assertTrue(body_matches(note(1, 2, "x", signature="uus"), "uu"))
        self.assertFalse(body_matches(note(1, 2, signature="ii"), "uu"))


class TestReplyDecoders(unittest.TestCase):

    def test_uint32(self):
        self.assertEqual(decode_uint32(70, "state"), 70)
        with self.assertRaises(DecodeError):
            decode_uint32("70", "state")
        with self.assertRaises(DecodeError):
            decode_uint32(2 ** 32, "state")
        with self.assertRaises(DecodeError):
            decode_uint32(False, "state")

    def test_string(self):
        self.assertEqual(decode_string("/org/x", "path"), "/org/x")
        with self.assertRaises(DecodeError):
            decode_string(None, "path")

    def test_path_list(self):
        self.assertEqual(decode_path_list(["/a", "/b"], "devices"), ["/a", "/b"])
        with self.assertRaises(DecodeError):
            decode_path_list("/a", "devices")
        with self.assertRaises(DecodeError):
            decode_path_list([1], "devices")


class TestStates(unittest.TestCase):

    def test_unknown_codes_fall_back(self):
        self.assertIs(NMState.parse(35), NMState.UNKNOWN)
        self.assertIs(NMDeviceState.parse(999), NMDeviceState.UNKNOWN)
        self.assertIs(NMConnectivity.parse(9), NMConnectivity.UNKNOWN)

    def test_labels(self):
        self.assertEqual(NMState.CONNECTED_GLOBAL.label, "Connected - Global")
        self.assertEqual(NMDeviceState.NEED_AUTH.label, "Need Auth")
        self.assertEqual(NMDeviceState.ACTIVATED.label, "Activated")
        self.assertEqual(NMConnectivity.FULL.label, "Full")

    def test_unit_active_state(self):
        self.assertTrue(UnitActiveState.parse("active").is_running)
        self.assertTrue(UnitActiveState.parse("activating").is_running)
        self.assertFalse(UnitActiveState.parse("inactive").is_running)
        self.assertFalse(UnitActiveState.parse("failed").is_running)
        self.assertIs(UnitActiveState.parse("bogus"), UnitActiveState.UNKNOWN)

    def test_job_result(self):
        self.assertEqual(JobResult.parse("done"), "done")
        self.assertIs(JobResult.parse("weird"), JobResult.UNKNOWN)


if __name__ == "__main__":
    unittest.main()
