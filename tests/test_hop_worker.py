import pytest

from hopcenter.workers.hop_worker import Worker


@pytest.fixture
def worker(channel_factory):
    sessions = []

    class FakeSession(channel_factory):
        replies_for_login = []

        def __init__(self, params, logger):
            channel_factory.__init__(self, 'manager#',
                                     list(self.replies_for_login))
            self.params = params
            self.closed = False
            sessions.append(self)

        def login(self):
            return self

        def close(self):
            self.closed = True

    w = Worker.__new__(Worker)
    w.thread_name = 'HOP-00001-000'
    w.session_class = FakeSession
    w.sessions = sessions
    return w


def params(**kwargs):
    p = dict(task_id='abc', ip='192.168.12.101', username='cisco',
             password='cisco', commands=['show clock'],
             elements=[dict(ip='10.0.0.3', password='p@ss')])
    p.update(kwargs)
    return p


def test_handler_collects_output(worker):
    worker.session_class.replies_for_login = [
        '', 'router3#', 'show clock\r\n10:00:00\r\nrouter3#', '\r\nmanager#']
    result = worker.handler('abc', params())
    assert result['status'] == 'success'
    assert result['output'][0]['status'] == 'Ok'
    assert result['output'][0]['output'] == '10:00:00'
    assert result['log'] == ''
    assert worker.sessions[0].closed
    assert worker.sessions[0].params['timeout'] == 30


def test_handler_reports_unreachable_in_log(worker):
    worker.session_class.replies_for_login = [
        '', '% Connection refused by remote host\r\nmanager#']
    result = worker.handler('abc', params())
    assert result['status'] == 'success'
    assert result['output'][0]['status'] == 'HostUnreachable'
    assert '10.0.0.3 host down' in result['log']


def test_handler_fails_on_bad_auth_mode(worker):
    bad = [dict(ip='10.0.0.3', password='p@ss', authentication='Token')]
    result = worker.handler('abc', params(elements=bad))
    assert result['status'] == 'fail'
    assert 'Unknown authentication mode' in result['message']
    assert worker.sessions[0].closed


def test_handler_fails_on_timeout_without_partial_output(worker):
    worker.session_class.replies_for_login = ['', 'router3#', 'no prompt']
    result = worker.handler('abc', params())
    assert result['status'] == 'fail'
    assert result['output'] == []


def test_process_stamps_task(worker):
    worker.session_class.replies_for_login = [
        '', 'router3#', 'show clock\r\n10:00:00\r\nrouter3#', '']
    result = worker.process(params())
    assert result['task_id'] == 'abc'
    assert result['ip'] == '192.168.12.101'
    assert 'start@' in result and 'finish@' in result
