from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_socketio import SocketIO

jwt = JWTManager()
migrate = Migrate()
socketio = SocketIO(cors_allowed_origins="*")
