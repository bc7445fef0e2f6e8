"""Tests for the Slack channel"""

from unittest import mock

import requests

from resmon.alerts.channels.slack_channel import CLEARED_COLOR, RAISED_COLOR, SlackChannel

CONFIG = {'webhook_url': 'https://hooks.slack.example.com/T000/B000', 'channel': '#ops'}


class TestSlackChannel:
    """Test Slack webhook delivery"""

    def test_send_raised(self):
        """Test that raised alerts are posted with the raised color"""
        channel = SlackChannel(CONFIG)

        with mock.patch('requests.post') as post:
            assert channel.send("[🚨 Resmon Alert - CPU Usage Exceeded Threshold]", "CPU usage alert: 91.00%")

        url = post.call_args[0][0]
        payload = post.call_args[1]['json']
        assert url == CONFIG['webhook_url']
        assert payload['channel'] == '#ops'
        assert payload['attachments'][0]['color'] == RAISED_COLOR
        assert payload['attachments'][0]['text'] == "CPU usage alert: 91.00%"

    def test_send_cleared(self):
        """Test that recoveries use the cleared color"""
        channel = SlackChannel(CONFIG)

        with mock.patch('requests.post') as post:
            channel.send("[✅ Resmon Alert - CPU Usage Recovered]", "CPU usage recovered: 10.00%")

        assert post.call_args[1]['json']['attachments'][0]['color'] == CLEARED_COLOR

    def test_http_error_returns_false(self):
        """Test that HTTP errors are reported, not raised"""
        channel = SlackChannel(CONFIG)

        with mock.patch('requests.post') as post:
            post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
            assert channel.send("subject", "body") is False
