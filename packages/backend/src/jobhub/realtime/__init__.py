"""Real-time transport: the WebSocket channel workers and senders share.

Learn: Messages flow in one direction per step:
1. Socket → read loop → DispatchHub.handle_message() (synchronous)
2. DispatchHub → Connection.send() → outbound queue → writer task → socket

The hub never touches sockets directly, only Connection handles.
"""
