# -*- coding: utf-8 -*-

"""
Run commands on a network element reached by a nested login ("hop") from a
manager session that is already logged in.

The manager session only has to provide ``write(data)`` and
``read_until(pattern)``; see ``manager_ssh.ManagerSession``.
"""

__version__ = 0.3
__author__ = 'zhutong <zhtong@cisco.com>'

import logging
import os
import re
from enum import Enum
from time import strftime

from .hop_patterns import (PROMPT_TERMINATOR, PAGINATION_MARKER, PAGE, DONE,
                           PromptContext, TerminationDetector,
                           extract_hostname)

AUTH_FAILED_SIGN = 'Authentication failed'
UNREACHABLE_SIGNS = ('% Connection timed out; remote host not responding',
                     '% Connection refused by remote host')
INVALID_INPUT_SIGN = 'Invalid input detected'
INTERRUPT = '\x03'
CONTINUE_KEY = ' '
EXIT_COMMAND = 'exit'
DEFAULT_ECHOED = ('show run',)

WELCOME_PATTERN = re.compile('|'.join(
    [PROMPT_TERMINATOR, re.escape(AUTH_FAILED_SIGN)] +
    [re.escape(s) for s in UNREACHABLE_SIGNS]))

# A-z also spans [\]^_` which count as content
_more_pattern = re.compile(r'[ \t]*' + re.escape(PAGINATION_MARKER) +
                           r'[^*!\nA-z0-9]*')
_ansi_pattern = re.compile(r'\x1b\[[0-9;?]*[a-zA-Z]|\x1b[()][AB012]|\x07|'
                           r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]')


class ConnectMethod(Enum):
    SSH = 'ssh'
    TELNET = 'telnet'


class AuthMode(Enum):
    PASSWORD = 'Password'
    USERNAME_PASSWORD = 'Username:Password'


class InvalidAuthMode(ValueError):

    def __init__(self, auth):
        ValueError.__init__(self, 'Unknown authentication mode: %r' % (auth,))
        self.auth = auth


class HopException(Exception):
    HOST_UNREACHABLE = -1
    AUTH_FAILED = -2

    __message = {HOST_UNREACHABLE: 'Host unreachable',
                 AUTH_FAILED: 'Authentication failed'}
    __status = {HOST_UNREACHABLE: 'HostUnreachable',
                AUTH_FAILED: 'AuthFailed'}

    def __init__(self, err_code, address):
        Exception.__init__(self, err_code, address)
        self.err_code = err_code
        self.err_msg = self.__message[err_code]
        self.status = self.__status[err_code]
        self.address = address

    def __str__(self):
        return '<HopException.%s: %s>' % (self.err_msg, self.address)


class Element(object):
    """
    A network element reached from the manager session.

    ``auth`` is ``'Password'`` (ssh, the manager user is reused) or
    ``'Username:Password'`` (telnet style login).
    """

    def __init__(self, address, password, auth=AuthMode.PASSWORD,
                 method=ConnectMethod.SSH, username=None):
        try:
            auth = AuthMode(auth)
        except ValueError:
            raise InvalidAuthMode(auth)
        method = ConnectMethod(method.lower() if isinstance(method, str)
                               else method)
        if auth is AuthMode.USERNAME_PASSWORD and not username:
            raise ValueError('username is required for %s' % auth.value)
        self.address = address
        self.password = password
        self.auth = auth
        self.method = method
        self.username = username

    @classmethod
    def from_params(cls, params):
        return cls(address=params.get('ip_address') or params['ip'],
                   password=params['password'],
                   auth=params.get('authentication',
                                   params.get('auth', 'Password')),
                   method=params.get('line', params.get('method', 'ssh')),
                   username=params.get('username'))

    def __repr__(self):
        return '<Element %s %s>' % (self.method.value, self.address)


class HopLog(object):
    """Diagnostics of one invocation; lines are echoed to the logger too."""

    def __init__(self, logger=logging):
        self.logger = logger
        self._lines = []

    def log(self, msg):
        self._lines.append(msg + os.linesep)
        try:
            self.logger.warning(msg)
        except Exception:
            pass

    def getvalue(self):
        return ''.join(self._lines)

    def __len__(self):
        return len(self._lines)


def _login_lines(element):
    if element.auth is AuthMode.USERNAME_PASSWORD:
        return '%s\n%s\n' % (element.username, element.password)
    elif element.auth is AuthMode.PASSWORD:
        return '%s\n' % element.password
    raise InvalidAuthMode(element.auth)


def _login_failed(welcome_string):
    return (AUTH_FAILED_SIGN in welcome_string or
            any(s in welcome_string for s in UNREACHABLE_SIGNS))


def connect_hop(session, element, log):
    """
    Log in to ``element`` from the manager session.

    Returns the PromptContext of the hop. Raises HopException when the host
    is unreachable or refuses the credentials; in the latter case the stuck
    login is interrupted so the manager prompt is usable again. Manager
    prompts still queued from an earlier hop are read past, never taken
    for the element's prompt.
    """
    entry_string = session.read_until(PROMPT_TERMINATOR)
    manager_hostname = extract_hostname(entry_string)
    login_lines = _login_lines(element)

    session.write('%s %s\n' % (element.method.value, element.address))
    session.write(login_lines)

    welcome_string = session.read_until(WELCOME_PATTERN)
    # manager prompts left behind by an earlier failed hop
    while (manager_hostname and
           extract_hostname(welcome_string) == manager_hostname and
           not _login_failed(welcome_string)):
        logging.info('%s skipping stale prompt: %s', element.address,
                     manager_hostname)
        welcome_string = session.read_until(WELCOME_PATTERN)
    if any(s in welcome_string for s in UNREACHABLE_SIGNS):
        log.log('%s host down' % element.address)
        raise HopException(HopException.HOST_UNREACHABLE, element.address)
    if AUTH_FAILED_SIGN in welcome_string:
        log.log('%s Authentication failed.' % element.address)
        session.write(INTERRUPT)
        session.read_until(PROMPT_TERMINATOR)
        # the next hop starts by reading the manager prompt
        session.write('\n')
        raise HopException(HopException.AUTH_FAILED, element.address)

    hostname = extract_hostname(welcome_string)
    logging.info('%s hop success. Got hostname: %s', element.address, hostname)
    return PromptContext(manager_hostname, hostname)


def run_commands(session, prompt_context, commands, log, address=None):
    """
    Send each command, answer every ``--More--`` with a space and return the
    raw output of all commands. Leaves the element with ``exit`` at the end.
    """
    if isinstance(commands, str):
        commands = [commands]
    address = address or prompt_context.hostname
    detector = TerminationDetector(prompt_context)
    res = []
    for command in commands:
        logging.info('%s execute: %s', address, command)
        session.write(command + '\n')
        transcript = []
        reported = False
        while True:
            section = session.read_until(detector.read_pattern)
            transcript.append(section)
            if not reported and INVALID_INPUT_SIGN in ''.join(transcript):
                log.log('%s command `%s` not available.' % (address, command))
                reported = True
            action = detector.next_action(section)
            if action == PAGE:
                session.write(CONTINUE_KEY)
            elif action == DONE:
                break
        start = detector.prompt_start(section)
        if start is None:
            session.read_until(PROMPT_TERMINATOR)
        else:
            transcript[-1] = section[:start]
        res.append(''.join(transcript))
    session.write(EXIT_COMMAND + '\n')
    return ''.join(res)


def sanitize(output, echoed=DEFAULT_ECHOED):
    """
    Clean a raw transcript: drop the command echo, the ``--More--`` markers
    with the padding that erases them, escape sequences and surrounding
    whitespace. Running it on its own result changes nothing.
    """
    for command in echoed:
        output = output.replace(command + '\r\n', '')

    output = output.replace('\r\n', '\n')
    output = _ansi_pattern.sub('', output).replace('\r', '')
    while '[K' in output:
        output = output.replace('[K', '')

    def _drop_more(m):
        text = m.string
        before = text[m.start() - 1] if m.start() else '\n'
        after = text[m.end()] if m.end() < len(text) else '\n'
        if before == '\n' or after == '\n':
            return ''
        return '\n'
    # adjacent markers can hide each other from a single pass
    while PAGINATION_MARKER in output:
        output = _more_pattern.sub(_drop_more, output)
    return output.strip()


def exec_hop(session, element, commands, log):
    """Hop into ``element``, run ``commands`` and return (output, hostname)."""
    if isinstance(commands, str):
        commands = [commands]
    prompt_context = connect_hop(session, element, log)
    output = run_commands(session, prompt_context, commands, log,
                          address=element.address)
    return sanitize(output, echoed=commands), prompt_context.hostname


def collect(session, elements, commands, log):
    """
    Run ``commands`` on every element in turn over one manager session.

    Unreachable elements and failed logins are recorded and skipped.
    Transport errors end the whole collection.
    """
    results = []
    for element in elements:
        hostname = None
        try:
            output, hostname = exec_hop(session, element, commands, log)
            if INVALID_INPUT_SIGN in output:
                status = 'Error'
            else:
                status = 'Ok'
            message = ''
        except HopException as e:
            status = e.status
            message = e.err_msg
            output = ''
        timestamp = strftime('%Y-%m-%d %H:%M:%S')
        results.append(dict(ip=element.address,
                            hostname=hostname,
                            status=status,
                            message=message,
                            output=output,
                            timestamp=timestamp))
    return results
