import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_login import LoginManager
from werkzeug.middleware.proxy_fix import ProxyFix

from config import Config
from database import db

logging.basicConfig(level=getattr(logging, Config.LOG_LEVEL, logging.DEBUG))

# Create the app
app = Flask(__name__)
app.config.from_object(Config)
app.secret_key = app.config["SECRET_KEY"]
# CORS is restricted to the `/api/*` namespace
CORS(app, resources={r"/api/*": {"origins": app.config["ALLOWED_ORIGINS"]}}, supports_credentials=True)
app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

# Initialize extensions
db.init_app(app)
login_manager = LoginManager()
login_manager.init_app(app)

@login_manager.user_loader
def load_user(user_id):
    from models import User
    return db.session.get(User, int(user_id))

@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'success': False, 'error': 'Authentication required'}), 401

# Create upload directory if it doesn't exist
os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

# Import routes and register them with the app
from routes import register_routes
register_routes(app)

with app.app_context():
    # Import models to create tables
    import models  # noqa: F401

    db.create_all()

    # Create default admin user if none exists
    from models import User, UserRole
    from werkzeug.security import generate_password_hash

    if not User.query.filter_by(email=app.config["ADMIN_EMAIL"]).first():
        admin_user = User(
            email=app.config["ADMIN_EMAIL"],
            full_name='Administrator',
            password_hash=generate_password_hash(app.config["ADMIN_PASSWORD"]),
            role=UserRole.ADMIN,
            onboarding_complete=True
        )
        db.session.add(admin_user)
        db.session.commit()
        logging.info(f"Default admin user created: {app.config['ADMIN_EMAIL']}")

if __name__ == '__main__':
    if app.config["START_BACKGROUND_SERVICES"]:
        from scheduler import start_background_services
        start_background_services(app)

    app.run(host='0.0.0.0', port=5000, debug=True)
