from flask import Blueprint, request, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError
from .auth import session_required
from .models import Video
from .validation import ValidationError, validate_video_payload
from . import db

videos_bp = Blueprint('videos', __name__)

@videos_bp.route('', methods=['GET'])
def list_videos():
    try:
        videos = Video.query.order_by(Video.created_at.desc()).all()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error fetching videos: {e}")
        return jsonify({"msg": "Failed to fetch videos"}), 500

    # An empty store is still a successful, empty list
    return jsonify([video.to_dict() for video in videos]), 200

@videos_bp.route('', methods=['POST'])
@session_required
def create_video():
    try:
        fields = validate_video_payload(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    try:
        new_video = Video(**fields)
        db.session.add(new_video)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating video '{fields['title']}': {e}")
        return jsonify({"msg": "Failed to create video"}), 500

    current_app.logger.info(f"Video {new_video.id} created.")
    return jsonify(new_video.to_dict()), 201

@videos_bp.route('/<video_id>', methods=['GET'])
def get_video(video_id):
    try:
        video = db.session.get(Video, video_id)
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error fetching video {video_id}: {e}")
        return jsonify({"msg": "Failed to fetch video"}), 500

    if not video:
        return jsonify({"msg": "Video not found"}), 404

    return jsonify(video.to_dict()), 200
