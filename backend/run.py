from racer import create_app, socketio
from racer.services.leaderboard.retention import schedule_retention

app = create_app()

if __name__ == '__main__':
    schedule_retention(app)
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)
