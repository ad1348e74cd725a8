"""
Tests for the job-correlated start/stop state machine.

The FakeTransport answers LoadUnit / ActiveState / StartUnit / StopUnit and
lets each test decide which JobRemoved signals show up while the job is
being requested.
"""

import threading
import unittest

from fakes import FakeTransport, job_removed

from sysbus_toolkit.constants import (
    SYSTEMD_METHOD_START_UNIT,
    SYSTEMD_METHOD_STOP_UNIT,
    SYSTEMD_METHOD_SUBSCRIBE,
)
from sysbus_toolkit.core.states import UnitActiveState
from sysbus_toolkit.errors import (
    BusError,
    ConvergenceError,
    DecodeError,
    JobTimeoutError,
    OperationInterrupted,
)
from sysbus_toolkit.flow.unit_control import JOB_REMOVED_MATCH, UnitController


class UnitControlTestCase(unittest.TestCase):

    def setUp(self):
        self.transport = FakeTransport()
        self.shutdown = threading.Event()
        self.controller = UnitController(self.transport, job_timeout=1.0, shutdown=self.shutdown)

    def complete_jobs(self, result="done", new_state=None, decoys=()):
        """Answer every job request with JobRemoved(result), after any decoys."""
        def on_job(conn, method, unit, job_path):
            for decoy in decoys:
                conn.deliver(decoy)
            if new_state is not None:
                self.transport.unit_states[unit] = new_state
            conn.deliver(job_removed(job_path, unit, result))
        self.transport.on_job = on_job

    def assert_no_leaks(self):
        self.assertEqual(self.transport.open_connections, 0)


class TestStartService(UnitControlTestCase):

    def test_start_inactive_unit_done(self):
        self.transport.add_unit("demo", "inactive")
        self.complete_jobs("done", new_state="active")

        self.controller.start_service("demo")

        self.assertEqual(len(self.transport.mutating_calls), 1)
        call = self.transport.mutating_calls[0]
        self.assertEqual(call.method, SYSTEMD_METHOD_START_UNIT)
        self.assertEqual(call.args, ("demo", "replace"))
        self.assert_no_leaks()

    def test_start_receives_job_7(self):
        self.transport.add_unit("demo", "inactive")
        seen = []

        def on_job(conn, method, unit, job_path):
            seen.append(job_path)
            conn.deliver(job_removed(job_path, "demo", "done", job_id=1))
        self.transport.on_job = on_job

        self.controller.start_service("demo")
        self.assertEqual(seen, ["/org/freedesktop/systemd1/job/7"])

    def test_already_active_is_noop(self):
        self.transport.add_unit("demo", "active")
        self.controller.start_service("demo")
        self.assertEqual(self.transport.mutating_calls, [])
        self.assertEqual(self.transport.match_rules, [])
        self.assert_no_leaks()

    def test_match_rule_registered_before_request(self):
        self.transport.add_unit("demo", "inactive")
        self.complete_jobs()
        self.controller.start_service("demo")

        events = self.transport.events
        match_at = events.index(("match", JOB_REMOVED_MATCH.rule()))
        subscribe_at = events.index(("call", SYSTEMD_METHOD_SUBSCRIBE))
        start_at = events.index(("call", SYSTEMD_METHOD_START_UNIT))
        self.assertLess(match_at, start_at)
        self.assertLess(subscribe_at, start_at)

    def test_only_matching_job_token_is_accepted(self):
        self.transport.add_unit("demo", "inactive")
        decoys = [
            job_removed("/org/freedesktop/systemd1/job/99", "other.service", "failed", job_id=99),
            job_removed("/org/freedesktop/systemd1/job/100", "demo", "canceled", job_id=100),
        ]
        # Unit stays inactive: had a decoy been taken as our result, the
        # reconcile step would raise ConvergenceError.
        self.complete_jobs("done", decoys=decoys)
        self.controller.start_service("demo")
        self.assert_no_leaks()

    def test_unrelated_and_malformed_signals_are_skipped(self):
        self.transport.add_unit("demo", "inactive")

        def on_job(conn, method, unit, job_path):
            self.transport.emit(conn, "/org/freedesktop/systemd1", "org.freedesktop.systemd1.Manager",
                                "UnitNew", "demo", "/unit/demo")
            self.transport.emit(conn, "/org/freedesktop/systemd1", "org.freedesktop.systemd1.Manager",
                                "JobRemoved", 1, job_path)
            conn.deliver(job_removed(job_path, unit, "done"))
        self.transport.on_job = on_job

        self.controller.start_service("demo")

    def test_malformed_completion_fails_fast_and_releases_connection(self):
        self.transport.add_unit("demo", "inactive")
        self.controller.job_timeout = 5.0
        self.transport.on_job = lambda conn, method, unit, job_path: conn.deliver(
            job_removed(job_path, unit, 42, signature=None))

        with self.assertRaises(DecodeError):
            self.controller.start_service("demo")
        self.assert_no_leaks()

    def test_timeout_when_no_completion_arrives(self):
        self.transport.add_unit("demo", "inactive")
        self.controller.job_timeout = 0.3

        with self.assertRaises(JobTimeoutError) as ctx:
            self.controller.start_service("demo")
        self.assertEqual(ctx.exception.job_path, "/org/freedesktop/systemd1/job/7")
        self.assert_no_leaks()

        # The request is not re-issued, and a follow-up query still works.
        self.assertEqual(len(self.transport.mutating_calls), 1)
        self.assertFalse(self.controller.check_service_status("demo"))
        self.assert_no_leaks()

    def test_failed_result_but_unit_active_counts_as_success(self):
        self.transport.add_unit("demo", "inactive")
        self.complete_jobs("failed", new_state="active")
        self.controller.start_service("demo")

    def test_failed_result_and_unit_down_raises_convergence_error(self):
        self.transport.add_unit("demo", "inactive")
        self.complete_jobs("failed", new_state="failed")

        with self.assertRaises(ConvergenceError) as ctx:
            self.controller.start_service("demo")
        self.assertEqual(ctx.exception.result, "failed")
        self.assertEqual(ctx.exception.unit, "demo")
        self.assertIn("failed", str(ctx.exception))
        self.assert_no_leaks()

    def test_unknown_unit_is_a_bus_error(self):
        with self.assertRaises(BusError) as ctx:
            self.controller.start_service("missing")
        self.assertEqual(ctx.exception.dbus_name, "org.freedesktop.systemd1.NoSuchUnit")
        self.assert_no_leaks()

    def test_connect_failure_is_a_bus_error(self):
        self.transport.fail_connect = True
        with self.assertRaises(BusError):
            self.controller.start_service("demo")

    def test_shutdown_interrupts_wait(self):
        self.transport.add_unit("demo", "inactive")
        self.controller.job_timeout = 5.0
        self.shutdown.set()
        with self.assertRaises(OperationInterrupted):
            self.controller.start_service("demo")
        self.assert_no_leaks()


class TestStopService(UnitControlTestCase):

    def test_stop_active_unit_done(self):
        self.transport.add_unit("demo", "active")
        self.complete_jobs("done", new_state="inactive")

        self.controller.stop_service("demo")

        self.assertEqual([c.method for c in self.transport.mutating_calls], [SYSTEMD_METHOD_STOP_UNIT])
        self.assert_no_leaks()

    def test_already_stopped_is_noop(self):
        self.transport.add_unit("demo", "failed")
        self.controller.stop_service("demo")
        self.assertEqual(self.transport.mutating_calls, [])

    def test_canceled_but_unit_inactive_counts_as_success(self):
        self.transport.add_unit("demo", "active")
        self.complete_jobs("canceled", new_state="inactive")
        self.controller.stop_service("demo")

    def test_unit_still_running_raises_convergence_error(self):
        self.transport.add_unit("demo", "active")
        self.complete_jobs("timeout")
        with self.assertRaises(ConvergenceError) as ctx:
            self.controller.stop_service("demo")
        self.assertIn("still running", str(ctx.exception))


class TestQueries(UnitControlTestCase):

    def test_unit_state(self):
        self.transport.add_unit("demo", "activating")
        self.assertIs(self.controller.get_unit_state("demo"), UnitActiveState.ACTIVATING)
        self.assertTrue(self.controller.check_service_status("demo"))
        self.assert_no_leaks()

    def test_wait_job_complete_returns_raw_result(self):
        conn = self.transport.connect()
        conn.deliver(job_removed("/job/1", "demo", "skipped"))
        self.assertEqual(self.controller.wait_job_complete(conn, "/job/1", timeout=1), "skipped")
        self.transport.close(conn)

    def test_malformed_result_for_our_job_is_a_decode_error(self):
        self.controller.job_timeout = 5.0
        conn = self.transport.connect()
        conn.deliver(job_removed("/job/1", "demo", 42, signature=None))
        with self.assertRaises(DecodeError):
            self.controller.wait_job_complete(conn, "/job/1")
        self.transport.close(conn)

    def test_malformed_result_for_other_job_is_skipped(self):
        conn = self.transport.connect()
        conn.deliver(job_removed("/job/2", "other", 42, signature=None))
        conn.deliver(job_removed("/job/1", "demo", "done"))
        self.assertEqual(self.controller.wait_job_complete(conn, "/job/1"), "done")
        self.transport.close(conn)

    def test_wait_on_closed_connection(self):
        conn = self.transport.connect()
        self.transport.close(conn)
        with self.assertRaises(BusError):
            self.controller.wait_job_complete(conn, "/job/1", timeout=1)


if __name__ == "__main__":
    unittest.main()
