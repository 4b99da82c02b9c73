import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_login import LoginManager
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
login_manager = LoginManager()

def create_app(config=None):
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'a_default_secret_key')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///./reels.db') # SQLite unless DATABASE_URL is set
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = os.environ.get('JWT_SECRET_KEY', 'a_default_jwt_secret_key')

    # ImageKit configuration (media host for video and thumbnail bytes)
    app.config['IMAGEKIT_PUBLIC_KEY'] = os.environ.get('IMAGEKIT_PUBLIC_KEY', '')
    app.config['IMAGEKIT_PRIVATE_KEY'] = os.environ.get('IMAGEKIT_PRIVATE_KEY', '')
    app.config['IMAGEKIT_URL_ENDPOINT'] = os.environ.get('IMAGEKIT_URL_ENDPOINT', '')
    # Seconds until upload credentials expire. ImageKit rejects anything over an hour.
    app.config['UPLOAD_AUTH_TTL'] = int(os.environ.get('UPLOAD_AUTH_TTL', 30 * 60))

    if config:
        app.config.update(config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    login_manager.init_app(app)

    # User loader function for Flask-Login
    from .models import User
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    # JSON API: no login page to redirect to
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"msg": "Unauthorized"}), 401

    from .auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')

    from .videos import videos_bp
    app.register_blueprint(videos_bp, url_prefix='/videos')

    from .uploads import uploads_bp
    app.register_blueprint(uploads_bp, url_prefix='/upload-auth')

    return app
