import re

import pytest

from hopcenter.workers.modules.manager_ssh import TransportTimeout


class ScriptedChannel(object):
    """
    In-memory stand in for a manager session.

    Every write pops the next reply (if any) into the receive buffer;
    read_until consumes the buffer up to the first match of the pattern.
    """

    def __init__(self, initial='', replies=()):
        self.buffer = initial
        self.replies = list(replies)
        self.writes = []

    def write(self, data):
        self.writes.append(data)
        if self.replies:
            self.buffer += self.replies.pop(0)

    def read_until(self, pattern):
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        m = pattern.search(self.buffer)
        if m is None:
            raise TransportTimeout('timeout waiting for %r' % pattern.pattern)
        consumed, self.buffer = self.buffer[:m.end()], self.buffer[m.end():]
        return consumed


@pytest.fixture
def channel_factory():
    return ScriptedChannel
