from functools import wraps
from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from flask_jwt_extended import create_access_token, verify_jwt_in_request, get_jwt_identity
from flask_login import login_user, logout_user, current_user
from .models import User
from .validation import ValidationError, validate_credentials
from . import db, jwt

auth_bp = Blueprint('auth', __name__)

def resolve_session_user():
    """Return the user behind the request's cookie session or bearer token, or None."""
    if current_user.is_authenticated:
        return current_user._get_current_object()
    # Invalid or expired tokens still raise and go through the loaders below
    verify_jwt_in_request(optional=True)
    if get_jwt_identity() is None:
        return None
    user_id = int(get_jwt_identity())
    return db.session.get(User, user_id)

def session_required(view):
    """Reject the request with 401 before the view runs when no session exists."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = resolve_session_user()
        if user is None:
            current_app.logger.warning(f"Unauthenticated {request.method} {request.path} rejected.")
            return jsonify({"msg": "Unauthorized"}), 401
        g.session_user = user
        return view(*args, **kwargs)
    return wrapper

@auth_bp.route('/register', methods=['POST'])
def register():
    try:
        email, password = validate_credentials(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"msg": "Email is already registered"}), 409

    try:
        new_user = User(email=email, password=password)
        db.session.add(new_user)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.session.rollback()
        return jsonify({"msg": "Email is already registered"}), 409
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error registering user {email}: {e}")
        return jsonify({"msg": "Failed to register user"}), 500

    return jsonify({"msg": "User registered successfully"}), 201

@auth_bp.route('/login', methods=['POST'])
def login():
    try:
        email, password = validate_credentials(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({"msg": "Invalid email or password"}), 401

    # Cookie session for browser clients, bearer token for API clients
    login_user(user, remember=request.get_json().get('remember') is True)
    access_token = create_access_token(identity=str(user.id), additional_claims={'email': user.email})
    return jsonify(access_token=access_token, user=user.to_dict()), 200

@auth_bp.route('/logout', methods=['POST'])
def logout():
    logout_user()
    return jsonify({"msg": "Logged out"}), 200

@auth_bp.route('/session', methods=['GET'])
@session_required
def session_info():
    return jsonify(user=g.session_user.to_dict()), 200

# Callback for loading a user from an access token
@jwt.user_lookup_loader
def user_lookup_callback(_jwt_header, jwt_data):
    user_id_str = jwt_data["sub"]
    if not user_id_str:
        return None
    try:
        user_id = int(user_id_str)
    except ValueError:
        return None
    return db.session.get(User, user_id)

@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({
        'status': 401,
        'sub_status': 42, # Custom sub-status code for expired token
        'msg': 'The token has expired'
    }), 401

@jwt.invalid_token_loader
def invalid_token_callback(error_string):
    return jsonify({
        'status': 401,
        'sub_status': 43, # Custom sub-status code for invalid token
        'msg': f'Invalid token: {error_string}'
    }), 401

@jwt.user_lookup_error_loader
def user_lookup_error_callback(_jwt_header, jwt_data):
    return jsonify({
        'status': 401,
        'sub_status': 45, # Token subject no longer exists
        'msg': 'User not found for token'
    }), 401
