# encoding: utf-8

import logging
import os
import time
from threading import Thread

import zmq
from tornado import ioloop, options
from tornado.log import enable_pretty_logging

from ...config import WORKER_SOCKET_PORT, WORKER_THREADS

enable_pretty_logging()

context = zmq.Context()


class BaseWorker(Thread):

    def __init__(self, thread_name, server, port):
        Thread.__init__(self)
        worker = context.socket(zmq.REP)
        worker.connect("tcp://%s:%d" % (server, port))
        logging.info('Worker thread %s started', thread_name)
        self.worker = worker
        self.thread_name = thread_name

    def run(self):
        worker = self.worker
        t_name = self.thread_name
        while True:
            message = worker.recv_json()
            worker.send_json(self.process(message))
            logging.info('%s: task finished %s', t_name, message['task_id'])

    def process(self, message):
        start_at = time.strftime('%Y-%m-%d %H:%M:%S')
        task_id = message['task_id']
        logging.info('%s: task started %s', self.thread_name, task_id)
        result = self.handler(task_id, message)
        result['task_id'] = task_id
        result['ip'] = message['ip']
        result['start@'] = start_at
        result['finish@'] = time.strftime('%Y-%m-%d %H:%M:%S')
        return result

    def handler(self, task_id, message):
        raise NotImplementedError()


def main(worker):
    options.define("s", default='127.0.0.1', help="zmq server", type=str)
    options.define("p", default=WORKER_SOCKET_PORT, help="zmq port", type=int)
    options.define("t", default=WORKER_THREADS, help="threads", type=int)
    options.parse_command_line()
    server = options.options.s
    port = options.options.p
    threads = options.options.t

    pid = os.getpid()
    for tid in range(threads):
        worker_name = '%s-%05d-%03d' % (worker.name, pid, tid)
        work = worker(worker_name, server, port)
        work.daemon = True
        work.start()

    try:
        ioloop.IOLoop.current().start()
    except KeyboardInterrupt:
        logging.info('Works exited')
