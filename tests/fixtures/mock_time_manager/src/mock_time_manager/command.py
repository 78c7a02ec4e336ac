# Commands are generated from requests.py by saucer-build.
# Import them in templates as `from mock_time_manager.command import notify_after`.
