import datetime
import uuid
from sqlalchemy.orm import validates
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from . import db

VIDEO_DIMENSIONS = {
    'width': 1080,
    'height': 1920,
}

def utcnow():
    return datetime.datetime.now(datetime.timezone.utc)

def new_video_id():
    return uuid.uuid4().hex

def normalize_email(email):
    return email.strip().lower()

class User(db.Model, UserMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __init__(self, email, password):
        self.email = email
        self.set_password(password)

    @validates('email')
    def validate_email(self, key, email):
        return normalize_email(email)

    def set_password(self, password):
        # Only place a plaintext password is touched; it is hashed once here.
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {"id": self.id, "email": self.email}

    def __repr__(self):
        return f'<User {self.email}>'

class Video(db.Model):
    __tablename__ = 'videos'

    id = db.Column(db.String(32), primary_key=True, default=new_video_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    video_url = db.Column(db.String(1024), nullable=False)
    thumbnail_url = db.Column(db.String(1024), nullable=False)
    controls = db.Column(db.Boolean, nullable=False, default=True)

    # Display transformation applied by the media host when serving the video
    transformation_height = db.Column(db.Integer, nullable=False, default=VIDEO_DIMENSIONS['height'])
    transformation_width = db.Column(db.Integer, nullable=False, default=VIDEO_DIMENSIONS['width'])
    transformation_quality = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint(
            'transformation_quality IS NULL OR '
            '(transformation_quality >= 1 AND transformation_quality <= 100)',
            name='ck_videos_quality_range',
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "videoUrl": self.video_url,
            "thumbnailUrl": self.thumbnail_url,
            "controls": self.controls,
            "transformation": {
                "height": self.transformation_height,
                "width": self.transformation_width,
                "quality": self.transformation_quality,
            },
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Video {self.title}>'
