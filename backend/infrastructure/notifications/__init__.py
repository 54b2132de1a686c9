from infrastructure.notifications.logging_notifier import LoggingNotifier, RecordingNotifier

__all__ = ["LoggingNotifier", "RecordingNotifier"]
