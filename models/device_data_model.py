from db import db


class DeviceData(db.Model):
    """A single reading pushed by a device. Append-only."""
    __tablename__ = 'device_data'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    device_id = db.Column(db.Integer, db.ForeignKey("iot_devices.id", ondelete='CASCADE'), nullable=False)
    data_type = db.Column(db.String, nullable=False)  # e.g. 'temperature', 'humidity', 'soil_moisture'
    value = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String, nullable=True)
    reading_metadata = db.Column("metadata", db.JSON, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    iot_devices = db.relationship("IotDevice", back_populates="device_data", lazy=True)

    def __repr__(self):
        return f"<DeviceData(id={self.id}, type='{self.data_type}', value={self.value}, unit='{self.unit}')>"
