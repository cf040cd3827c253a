import re


def compare_logs(caplog, expected_logs):
    """
    Compare log messages captured by caplog with the expected ones.

    Only records of the pubtools.dockerhub logger are compared. Expected logs are regular
    expressions matched against the start of each message, in order.
    """
    log_lines = [
        record.getMessage()
        for record in caplog.records
        if record.name.startswith("pubtools.dockerhub")
    ]
    assert len(log_lines) == len(expected_logs), "Logs: {0}".format(log_lines)
    for log_line, expected in zip(log_lines, expected_logs):
        assert re.match(expected, log_line), "'{0}' doesn't match '{1}'".format(log_line, expected)


class FakeProcess(object):
    """Stand-in for subprocess.Popen which records the input written to stdin."""

    def __init__(self, returncode=0, stdin=None):
        self.returncode = returncode
        self.stdin = stdin
        self.waited = False

    def wait(self):
        self.waited = True
        return self.returncode
