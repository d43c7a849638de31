import threading
import unittest
from unittest.mock import MagicMock, patch

from tests.constants import *
from tests.helper import *
from jaws_deploy.config_loader import PollSettings
from jaws_deploy.exceptions import ApiError, PollCancelledError, PollDeadlineExceededError, TransportError
from jaws_deploy.services.deployment_poller import DeploymentPoller
from jaws_deploy.services.log_sink import LogSink

SLEEP = "jaws_deploy.services.deployment_poller.time.sleep"


class TestDeploymentPoller(unittest.TestCase):
    def setUp(self):
        self.sink = MagicMock(spec=LogSink)

    def poller(self, client, **kwargs):
        return DeploymentPoller(client, self.sink, **kwargs)

    @patch(SLEEP)
    def test_returns_terminal_response_without_further_requests(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], RUNNING[1], COMPLETED, RUNNING[0]]})

        result = self.poller(client).poll_until_terminal(DEPLOYMENT_ID)

        self.assertEqual(result.status, "Completed")
        self.assertEqual(result.model_extra["environmentName"], "Staging")
        self.assertEqual(len(client.requests), 3)
        self.assertEqual(len(client.scripts[DEPLOYMENT_ID]), 1)
        # Sleeps only between non-terminal responses
        self.assertEqual(mock_sleep.call_count, 2)
        mock_sleep.assert_called_with(3)

    @patch(SLEEP)
    def test_terminal_on_first_poll_never_sleeps(self, mock_sleep):
        for fixture in (COMPLETED, FAILED, {"status": "Cancelled"}):
            client = FakeApiClient({DEPLOYMENT_ID: [fixture]})
            result = self.poller(client).poll_until_terminal(DEPLOYMENT_ID)
            self.assertTrue(result.is_terminal)
        mock_sleep.assert_not_called()

    @patch(SLEEP)
    def test_unknown_and_differently_cased_statuses_keep_polling(self, mock_sleep):
        script = [{"status": s} for s in ("Queued", "completed", "FAILED", "RollingBack", "")]
        client = FakeApiClient({DEPLOYMENT_ID: script + [{"status": "Failed"}]})

        result = self.poller(client).poll_until_terminal(DEPLOYMENT_ID)

        self.assertEqual(result.status, "Failed")
        self.assertEqual(len(client.requests), 6)
        self.assertEqual(mock_sleep.call_count, 5)

    @patch(SLEEP)
    def test_cursor_follows_previous_response_when_emitting_logs(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], RUNNING[1], COMPLETED]})

        self.poller(client).poll_until_terminal(DEPLOYMENT_ID, emit_logs=True)

        cursors = [r.get_logs_after for r in client.requests]
        self.assertEqual(cursors, [None, 638650000000000001, 638650000000000002])
        self.assertTrue(all(not r.skip_logs for r in client.requests))

    @patch(SLEEP)
    def test_logs_emitted_in_received_order(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], RUNNING[1], COMPLETED]})

        self.poller(client).poll_until_terminal(DEPLOYMENT_ID, emit_logs=True)

        messages = [c.args[0].message for c in self.sink.emit.call_args_list]
        self.assertEqual(messages, ["Deployment started", "Step 'Backup' skipped",
                                    "Uploading package web 1.4.0", "Deployment completed"])

    @patch(SLEEP)
    def test_skip_logs_never_sets_cursor_or_emits(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], RUNNING[1], COMPLETED]})

        self.poller(client).poll_until_terminal(DEPLOYMENT_ID, emit_logs=False)

        self.assertEqual(len(client.requests), 3)
        for request in client.requests:
            self.assertTrue(request.skip_logs)
            self.assertIsNone(request.get_logs_after)
            self.assertNotIn("getLogsAfter", request.to_query_params())
        self.sink.emit.assert_not_called()

    @patch(SLEEP)
    def test_missing_status_is_api_error(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [{"errorCount": 0}]})
        with self.assertRaises(ApiError):
            self.poller(client).poll_until_terminal(DEPLOYMENT_ID)

    @patch(SLEEP)
    def test_transport_error_aborts_loop(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], TransportError("connection reset"), COMPLETED]})
        with self.assertRaises(TransportError):
            self.poller(client).poll_until_terminal(DEPLOYMENT_ID)
        self.assertEqual(len(client.requests), 2)

    def test_cancel_before_first_poll(self):
        token = threading.Event()
        token.set()
        client = FakeApiClient({DEPLOYMENT_ID: [COMPLETED]})
        with self.assertRaises(PollCancelledError) as cm:
            self.poller(client, cancel_token=token).poll_until_terminal(DEPLOYMENT_ID)
        self.assertIn("cancelled by caller", str(cm.exception))
        self.assertEqual(client.requests, [])

    def test_cancel_during_sleep_stops_at_next_iteration(self):
        token = threading.Event()
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], COMPLETED]})
        with patch(SLEEP, side_effect=lambda seconds: token.set()):
            with self.assertRaises(PollCancelledError):
                self.poller(client, cancel_token=token).poll_until_terminal(DEPLOYMENT_ID)
        self.assertEqual(len(client.requests), 1)

    def test_deadline_exceeded(self):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], RUNNING[1], COMPLETED]})
        settings = PollSettings(interval=3, timeout=10)
        with patch("jaws_deploy.services.deployment_poller.time") as mock_time:
            mock_time.monotonic.side_effect = [0.0, 0.0, 11.0]
            with self.assertRaises(PollDeadlineExceededError) as cm:
                self.poller(client, settings=settings).poll_until_terminal(DEPLOYMENT_ID)
        self.assertIn(DEPLOYMENT_ID, str(cm.exception))
        self.assertEqual(len(client.requests), 1)

    @patch(SLEEP)
    def test_custom_interval(self, mock_sleep):
        client = FakeApiClient({DEPLOYMENT_ID: [RUNNING[0], COMPLETED]})
        self.poller(client, settings=PollSettings(interval=0.5)).poll_until_terminal(DEPLOYMENT_ID)
        mock_sleep.assert_called_once_with(0.5)

    @patch(SLEEP)
    def test_poll_all_waits_for_every_deployment(self, mock_sleep):
        client = FakeApiClient({
            DEPLOYMENT_ID: [RUNNING[0], COMPLETED],
            SECOND_DEPLOYMENT_ID: [RUNNING[0], RUNNING[1], FAILED],
        })

        results = self.poller(client).poll_all([SECOND_DEPLOYMENT_ID, DEPLOYMENT_ID])

        self.assertEqual(list(results), [SECOND_DEPLOYMENT_ID, DEPLOYMENT_ID])
        self.assertEqual(results[DEPLOYMENT_ID].status, "Completed")
        self.assertEqual(results[SECOND_DEPLOYMENT_ID].status, "Failed")
        self.assertEqual(len(client.requests_for(DEPLOYMENT_ID)), 2)
        self.assertEqual(len(client.requests_for(SECOND_DEPLOYMENT_ID)), 3)
        # One sleep per cycle, not per deployment
        self.assertEqual(mock_sleep.call_count, 2)
        cursors = [r.get_logs_after for r in client.requests_for(SECOND_DEPLOYMENT_ID)]
        self.assertEqual(cursors, [None, 638650000000000001, 638650000000000002])
        # Log lines carry the deployment id when several deployments are polled
        self.assertIn(SECOND_DEPLOYMENT_ID, {c.args[1] for c in self.sink.emit.call_args_list})

    def test_poll_all_requires_ids(self):
        with self.assertRaises(ValueError):
            self.poller(FakeApiClient()).poll_all([])

    @patch(SLEEP)
    def test_string_cursor_sent_back_unchanged(self, mock_sleep):
        tick = "2026-10-19T10:00:01.123Z"
        client = FakeApiClient({DEPLOYMENT_ID: [{"status": "Running", "lastLogDateTick": tick, "logs": []},
                                                COMPLETED]})

        self.poller(client).poll_until_terminal(DEPLOYMENT_ID, emit_logs=True)

        self.assertEqual(client.requests[1].get_logs_after, tick)
        self.assertEqual(client.requests[1].to_query_params()["getLogsAfter"], tick)


if __name__ == "__main__":
    unittest.main()
