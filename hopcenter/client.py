import time
import sys

import requests
from multiprocessing.dummy import Pool


def hop(i):
    elements = [dict(ip='10.0.%d.%d' % (i // 250, i % 250 + 1),
                     line='ssh',
                     authentication='Password',
                     password='cisco')]
    res = requests.post(hop_url,
                        json=dict(commands=['show run'],
                                  ip=manager,
                                  username='cisco',
                                  password='cisco',
                                  elements=elements),
                        timeout=1000)
    print(res.json())
    print('%06d finished @ %s, %d bytes' %
          (i, time.strftime('%H:%M:%S'), len(res.text)))


if __name__ == '__main__':
    try:
        n = int(sys.argv[1])
    except (IndexError, ValueError):
        n = 10
    try:
        ip = sys.argv[2]
    except IndexError:
        ip = '127.0.0.1'
    try:
        manager = sys.argv[3]
    except IndexError:
        manager = '192.168.12.101'

    hop_url = 'http://%s:8080/api/v1/sync/hop' % ip
    s = time.time()
    pool = Pool(50)
    pool.map(hop, range(n))
    print('Spend %d s' % int(time.time()-s))
