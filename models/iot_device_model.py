from db import db


class IotDevice(db.Model):
    """A sensor or controller registered to a user."""
    __tablename__ = 'iot_devices'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id", ondelete='CASCADE'), nullable=False)
    device_id = db.Column(db.String, nullable=False)  # e.g. 'Device_0001', the realtime store key
    device_name = db.Column(db.String, nullable=False)
    device_type = db.Column(db.String, nullable=False, default='sensor')
    location = db.Column(db.String, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_data_received = db.Column(db.DateTime, nullable=True)
    # 'metadata' is reserved on declarative models
    device_metadata = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    # --- Relationships ---
    users = db.relationship("Users", back_populates="iot_devices", lazy=True)
    # If a device is deleted, delete its readings
    device_data = db.relationship("DeviceData", back_populates="iot_devices", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<IotDevice(id={self.id}, device_id='{self.device_id}', user_id={self.user_id})>"
