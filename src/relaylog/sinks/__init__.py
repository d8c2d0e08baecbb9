"""
Log sinks.

- console: local stdout/stderr output
- slack: Slack incoming-webhook notifications for warnings and errors
- custom: anything implementing `Sink`
"""

from .base import Sink
from .console import ConsoleSink
from .slack import SlackSink
from .webhook import SlackWebhookClient

__all__ = ["ConsoleSink", "Sink", "SlackSink", "SlackWebhookClient"]
