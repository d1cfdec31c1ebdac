# -*- coding: utf-8 -*-

"""
pexpect based session to the manager device the hops start from.
OpenSSH is required.
"""

__version__ = 0.6
__author__ = 'zhutong <zhtong@cisco.com>'

import re

import pexpect

SSH_STR = 'ssh -p %d -o "UserKnownHostsFile /dev/null" -l %s %s'


class LoginException(Exception):
    LOGIN_TIMEOUT = -1
    CONNECTION_CLOSED = -2
    LOGIN_FAILED = -3

    __message = {LOGIN_TIMEOUT: 'Timeout',
                 CONNECTION_CLOSED: 'Connection_Closed',
                 LOGIN_FAILED: 'Wrong username or password'}

    def __init__(self, err_code):
        Exception.__init__(self, err_code)
        self.err_code = err_code
        self.err_msg = self.__message[err_code]

    def __str__(self):
        return '<LoginException.%s>' % self.err_msg


class TransportError(Exception):
    pass


class TransportTimeout(TransportError):
    pass


class ManagerSession(object):

    def __init__(self, device_info, logger):
        self.device_info = device_info
        self.ip = device_info['ip']
        self.port = device_info.get('port') or 22
        self.username = device_info.get('username')
        self.password = device_info.get('password')
        self.timeout = device_info.get('timeout', 30)
        self.logger = logger
        self.child = None

    def login(self):
        ip = self.ip
        timeout = self.timeout
        cmd_str = SSH_STR % (self.port, self.username, ip)
        self.logger.info('ssh %s as %s', ip, self.username)
        child = pexpect.spawn(cmd_str,
                              maxread=8192,
                              searchwindowsize=4096,
                              env={"TERM": "dumb"})
        try:
            first_pattern = ['.*assword:',
                             '.*(yes/no)',
                             pexpect.TIMEOUT,
                             pexpect.EOF]
            i = child.expect(first_pattern, timeout=timeout)
            if i == 2:
                raise LoginException(LoginException.LOGIN_TIMEOUT)
            if i == 3:
                raise LoginException(LoginException.CONNECTION_CLOSED)
            if i == 1:
                child.sendline('yes')
                child.expect(['.*assword:'], timeout=timeout)
            child.sendline(self.password)

            second_pattern = ['.*[#>]',
                              '.*assword:',
                              pexpect.TIMEOUT,
                              pexpect.EOF]
            i = child.expect(second_pattern, timeout=timeout)
            if i == 1:
                raise LoginException(LoginException.LOGIN_FAILED)
            if i == 2:
                raise LoginException(LoginException.LOGIN_TIMEOUT)
            if i == 3:
                raise LoginException(LoginException.CONNECTION_CLOSED)
        except LoginException as e:
            child.close()
            self.logger.warning('ssh %s failed: %s', ip, e.err_msg)
            raise
        child.timeout = timeout
        self.child = child
        # the prompt was consumed above, make the manager print it again
        child.sendline('')
        self.logger.info('ssh %s success', ip)
        return self

    def write(self, data):
        try:
            self.child.send(data)
        except OSError as e:
            raise TransportError('write to %s failed: %s' % (self.ip, e))

    def read_until(self, pattern):
        child = self.child
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        try:
            child.expect(pattern.pattern.encode(), timeout=self.timeout)
        except pexpect.TIMEOUT:
            self.logger.error('Timeout waiting for %r @ %s',
                              pattern.pattern, self.ip)
            raise TransportTimeout('timeout waiting for %r' % pattern.pattern)
        except pexpect.EOF:
            raise TransportError('connection to %s closed' % self.ip)
        return (child.before + child.after).decode('utf-8', 'replace')

    def close(self):
        try:
            self.child.sendline('exit')
            self.child.expect([pexpect.EOF, pexpect.TIMEOUT], timeout=5)
            self.child.close()
            self.logger.info('Disconnected from %s', self.ip)
        except Exception:
            pass
