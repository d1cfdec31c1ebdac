import json
import logging
from uuid import uuid4
from concurrent.futures import ThreadPoolExecutor
from threading import Thread

import zmq
from tornado import gen, ioloop, web, options
from tornado.concurrent import run_on_executor
from tornado.log import enable_pretty_logging

from .config import (CLIENT_SOCKET_PORT, WORKER_SOCKET_PORT, MAX_WORKERS,
                     PULLER_TIMEOUT, HOP_CHANNEL)

enable_pretty_logging()


context = zmq.Context()


def verify_params(params):
    """Check a hop task and return it ready to be queued."""
    commands = params.get('commands')
    if isinstance(commands, str):
        commands = [commands]
    if not commands:
        raise Exception('No valid commands')
    params['commands'] = commands

    if not params.get('ip'):
        raise Exception('No valid ip for manager')

    elements = params.get('elements')
    if not elements:
        raise Exception('No valid elements')
    for e in elements:
        if not (e.get('ip') or e.get('ip_address')):
            raise Exception('ip address not found for element %s' % e)
        if 'password' not in e:
            raise Exception('password not found for element %s' %
                            (e.get('ip') or e.get('ip_address')))
    return params


class Broker(Thread):

    def __init__(self):
        Thread.__init__(self)
        ctx = zmq.Context.instance()
        frontend = ctx.socket(zmq.ROUTER)
        frontend.bind("tcp://127.0.0.1:%d" % CLIENT_SOCKET_PORT)
        backend = ctx.socket(zmq.DEALER)
        backend.bind("tcp://*:%d" % WORKER_SOCKET_PORT)
        poller = zmq.Poller()
        poller.register(frontend, zmq.POLLIN)
        poller.register(backend, zmq.POLLIN)
        self.frontend = frontend
        self.backend = backend
        self.poller = poller

    def run(self):
        frontend = self.frontend
        backend = self.backend
        while True:
            socks = dict(self.poller.poll())
            if socks.get(frontend) == zmq.POLLIN:
                backend.send_multipart(frontend.recv_multipart())
            if socks.get(backend) == zmq.POLLIN:
                frontend.send_multipart(backend.recv_multipart())


class HopHandler(web.RequestHandler):
    executor = ThreadPoolExecutor(max_workers=MAX_WORKERS)

    @gen.coroutine
    def get(self):
        params = {}
        for k, v in self.request.arguments.items():
            if k in ('commands', 'cmd'):
                params['commands'] = [i.decode() for i in v]
            elif k in ('elements', 'e'):
                params['elements'] = [json.loads(i) for i in v]
            elif k in ('username', 'u'):
                params['username'] = v[0].decode()
            elif k in ('password', 'p'):
                params['password'] = v[0].decode()
            else:
                params[k] = v[0].decode()
        reply = yield self.process(params)
        self.write(reply)

    @gen.coroutine
    def post(self):
        params = json.loads(self.request.body)
        reply = yield self.process(params)
        self.write(reply)

    @run_on_executor
    def process(self, params):
        try:
            task = verify_params(params)
            task_id = uuid4().hex
            task['task_id'] = task_id
            x_real_ip = self.request.headers.get("X-Real-IP")
            remote_ip = x_real_ip or self.request.remote_ip
            logging.info("Request from %s, task: %s", remote_ip, task_id)
        except Exception as e:
            return dict(status='error', message=str(e))

        s = context.socket(zmq.REQ)
        s.connect('tcp://127.0.0.1:%d' % CLIENT_SOCKET_PORT)
        s.send_string(json.dumps(task))
        s.RCVTIMEO = PULLER_TIMEOUT  # in milliseconds
        try:
            message = s.recv_string()
            logging.info("Task finished: %s", task_id)
        except zmq.error.Again:
            logging.warning("Task timeouted: %s", task_id)
            message = dict(status='fail', message='timeout')
        finally:
            s.close()
        return message


def make_app():
    return web.Application([
        (r"/api/v1/sync/%s" % HOP_CHANNEL, HopHandler),
    ])


if __name__ == "__main__":
    options.define("p", default=8080, help="Web server port", type=int)
    options.parse_command_line()
    port = options.options.p

    broker = Broker()
    broker.daemon = True
    broker.start()

    print('Hop Center server started at %s' % port)
    print('Press "Ctrl+C" to exit.\n')
    make_app().listen(port)

    try:
        ioloop.IOLoop.current().start()
    except KeyboardInterrupt:
        print(' Interrupted')
