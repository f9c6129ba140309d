"""JobHub: connection-mediated job dispatcher.

Senders submit typed jobs over a WebSocket, registered workers advertise
capability tags and a concurrency limit, and the hub pushes each job to
the least-loaded eligible worker, then routes the result back.
"""

__version__ = "0.1.0"
