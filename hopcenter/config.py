CLIENT_SOCKET_PORT = 16001
WORKER_SOCKET_PORT = CLIENT_SOCKET_PORT + 9

# Used for threading pool mode only
MAX_WORKERS = 100
WORKER_THREADS = 10
PULLER_TIMEOUT = 2 * 3600 * 1000  # 2 hours

# Seconds a single read on the manager session may block
SESSION_TIMEOUT = 30

HOP_CHANNEL = 'hop'
