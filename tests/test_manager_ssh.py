from unittest import mock

import pexpect
import pytest

from hopcenter.workers.modules import manager_ssh
from hopcenter.workers.modules.manager_ssh import (
    LoginException, ManagerSession, TransportError, TransportTimeout)


@pytest.fixture
def child(monkeypatch):
    child = mock.MagicMock()
    monkeypatch.setattr(manager_ssh.pexpect, 'spawn',
                        mock.MagicMock(return_value=child))
    return child


def session(**kwargs):
    device_info = dict(ip='192.168.12.101', username='cisco',
                       password='secret', timeout=5)
    device_info.update(kwargs)
    return ManagerSession(device_info, mock.MagicMock())


def test_login(child):
    child.expect.side_effect = [0, 0]
    s = session()
    assert s.login() is s
    assert s.child is child
    assert child.sendline.call_args_list == [mock.call('secret'),
                                             mock.call('')]
    cmd = manager_ssh.pexpect.spawn.call_args[0][0]
    assert cmd.startswith('ssh -p 22 ')
    assert cmd.endswith('-l cisco 192.168.12.101')


def test_login_accepts_host_key(child):
    child.expect.side_effect = [1, 0, 0]
    session().login()
    assert child.sendline.call_args_list[:2] == [mock.call('yes'),
                                                 mock.call('secret')]


@pytest.mark.parametrize('side_effect, code', [
    ([0, 1], LoginException.LOGIN_FAILED),
    ([2], LoginException.LOGIN_TIMEOUT),
    ([3], LoginException.CONNECTION_CLOSED),
    ([0, 3], LoginException.CONNECTION_CLOSED),
])
def test_login_failures(child, side_effect, code):
    child.expect.side_effect = side_effect
    with pytest.raises(LoginException) as exc:
        session().login()
    assert exc.value.err_code == code
    assert child.close.called


def test_read_until_returns_consumed_text(child):
    s = session()
    s.child = child
    child.before = b'show clock\r\n10:00:00\r\n'
    child.after = b'R1#'
    assert s.read_until('#|>') == 'show clock\r\n10:00:00\r\nR1#'
    assert child.expect.call_args[0][0] == b'#|>'


def test_read_until_timeout(child):
    s = session()
    s.child = child
    child.expect.side_effect = pexpect.TIMEOUT('timeout')
    with pytest.raises(TransportTimeout):
        s.read_until('#|>')


def test_read_until_eof(child):
    s = session()
    s.child = child
    child.expect.side_effect = pexpect.EOF('eof')
    with pytest.raises(TransportError) as exc:
        s.read_until('#|>')
    assert not isinstance(exc.value, TransportTimeout)


def test_close_without_login_does_not_raise():
    session().close()
