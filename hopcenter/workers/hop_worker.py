# encoding: utf-8

from .modules.worker_base import BaseWorker, main, logging
from .modules.manager_ssh import ManagerSession
from .modules.hop_cli_helper import Element, HopLog, collect
from ..config import HOP_CHANNEL, SESSION_TIMEOUT


class Worker(BaseWorker):
    channel = HOP_CHANNEL
    name = channel.upper()
    session_class = ManagerSession

    def handler(self, task_id, params):
        commands = params['commands']
        params.setdefault('timeout', SESSION_TIMEOUT)
        hop_log = HopLog(logging)
        output = []
        hostname = params.get('hostname', '')

        session = self.session_class(params, logging)
        try:
            elements = [Element.from_params(e) for e in params['elements']]
            session.login()
            output = collect(session, elements, commands, hop_log)
            status = 'success'
            message = ''
        except Exception as e:
            status = 'fail'
            message = str(e)
        finally:
            session.close()

        return dict(status=status,
                    message=message,
                    hostname=hostname,
                    output=output,
                    log=hop_log.getvalue())


if __name__ == '__main__':
    main(Worker)
