from db import db


class Users(db.Model):
    """Represents an account that can sign in to the farm advisor."""
    __tablename__ = 'users'

    user_id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    # --- Relationships ---
    # If a User is deleted, delete all associated records:
    profile = db.relationship("Profile", back_populates="users", lazy=True, cascade="all, delete-orphan", uselist=False)
    crop_predictions = db.relationship("CropPrediction", back_populates="users", lazy=True, cascade="all, delete-orphan")
    iot_devices = db.relationship("IotDevice", back_populates="users", lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.user_id,
            "email": self.email,
        }

    def __repr__(self):
        return f"<User(id={self.user_id}, email='{self.email}')>"
