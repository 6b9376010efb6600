from db import db


class Profile(db.Model):
    """Farm metadata, one row per user."""
    __tablename__ = 'profiles'

    profile_id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id", ondelete='CASCADE'), unique=True, nullable=False)
    full_name = db.Column(db.String, nullable=True)
    farm_name = db.Column(db.String, nullable=True)
    farm_size = db.Column(db.Float, nullable=True)
    location = db.Column(db.String, nullable=True)
    phone_number = db.Column(db.String, nullable=True)
    primary_crops = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())

    users = db.relationship("Users", back_populates="profile", lazy=True)

    def __repr__(self):
        return f"<Profile(id={self.profile_id}, user_id={self.user_id}, farm='{self.farm_name}')>"
