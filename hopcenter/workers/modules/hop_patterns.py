# -*- coding: utf-8 -*-

"""
Prompt and pagination matching for the nested hop session.

The device stream has no framing, so the end of a command's output is
recognised by the first of: a ``--More--`` marker, an end-of-config marker,
or either known prompt reappearing.
"""

__version__ = 0.1
__author__ = 'zhutong <zhtong@cisco.com>'

import re

PROMPT_TERMINATOR = r'#|>'
PAGINATION_MARKER = '--More--'
END_MARKERS = (r'\nend\r\n',
               r'\bend\r\n')
PROMPT_SUFFIX = r'[\w()\-]*[#>]'

_hostname_pattern = re.compile(r'(.*)[#>]')

READ = 0
PAGE = 1
DONE = 2


def extract_hostname(text):
    """Text before the last prompt terminator, or None."""
    matches = _hostname_pattern.findall(text or '')
    if not matches:
        return None
    return matches[-1].strip()


class PromptContext(object):

    def __init__(self, manager_hostname, hostname):
        self.manager_hostname = manager_hostname
        self.hostname = hostname

    def __repr__(self):
        return '<PromptContext manager=%r hostname=%r>' % (
            self.manager_hostname, self.hostname)


class TerminationDetector(object):

    def __init__(self, prompt_context):
        self.prompt_context = prompt_context
        prompt_patterns = []
        for name in (prompt_context.hostname,
                     prompt_context.manager_hostname):
            if name:
                prompt_patterns.append(re.escape(name) + PROMPT_SUFFIX)
        self.prompt_patterns = prompt_patterns
        self.end_patterns = list(END_MARKERS)
        self.termination_patterns = self.end_patterns + prompt_patterns
        self._end = re.compile('|'.join(self.end_patterns))
        self._termination = re.compile('|'.join(self.termination_patterns))
        self.read_pattern = re.compile(
            '|'.join([re.escape(PAGINATION_MARKER)] +
                     self.termination_patterns))

    def is_paged(self, section):
        return PAGINATION_MARKER in section

    def is_finished(self, section):
        return self._termination.search(section) is not None

    def prompt_start(self, section):
        """Offset of the prompt that ended ``section``, or None."""
        m = self._termination.search(section)
        if m is None or self._end.match(section, m.start()):
            return None
        return m.start()

    def ended_on_prompt(self, section):
        return self.prompt_start(section) is not None

    def next_action(self, section):
        # a page that also matches an end marker keeps paging
        if self.is_paged(section):
            return PAGE
        if self.is_finished(section):
            return DONE
        return READ
