# app.py
"""
Thin runner that uses the unified factory and runs Socket.IO.
Economy events are pushed to each character's room; the contract sweeper runs in-process.
"""
import os
from flask_login import current_user
from flask_socketio import SocketIO, join_room
from syndicate import create_app, start_sweeper
from syndicate.services import SocketIODispatcher

app = create_app()
socketio = SocketIO(app, cors_allowed_origins="*")
app.extensions["economy"].dispatcher = SocketIODispatcher(socketio)


@socketio.on("connect")
def on_connect(auth=None):
    # one room per character; events are addressed by character id
    if current_user.is_authenticated and current_user.character is not None:
        join_room(str(current_user.character.character_id))


if __name__ == "__main__":
    if os.environ.get("START_SWEEPER", "1") == "1":
        start_sweeper(app)
    socketio.run(app, host="0.0.0.0", port=5000, debug=True, use_reloader=False)
