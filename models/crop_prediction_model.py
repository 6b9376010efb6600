from db import db


class CropPrediction(db.Model):
    """A yield prediction made from the prediction form. Rows are never updated."""
    __tablename__ = 'crop_predictions'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id", ondelete='CASCADE'), nullable=False)
    crop_type = db.Column(db.String, nullable=False)
    field_area = db.Column(db.Float, nullable=False)
    soil_ph = db.Column(db.Float, nullable=True)
    soil_moisture = db.Column(db.Float, nullable=True)
    nitrogen_level = db.Column(db.Float, nullable=True)
    phosphorus_level = db.Column(db.Float, nullable=True)
    potassium_level = db.Column(db.Float, nullable=True)
    temperature = db.Column(db.Float, nullable=True)
    rainfall = db.Column(db.Float, nullable=True)
    humidity = db.Column(db.Float, nullable=True)
    irrigation_method = db.Column(db.String, nullable=True)
    fertilizer_used = db.Column(db.String, nullable=True)
    predicted_yield = db.Column(db.Float, nullable=True)
    confidence_score = db.Column(db.Float, nullable=True)
    recommendations = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    # --- Relationships ---
    users = db.relationship("Users", back_populates="crop_predictions", lazy=True)
    # If a prediction is deleted, delete its advisory rows
    recommendation_items = db.relationship("Recommendation", back_populates="crop_predictions", lazy=True,
                                           cascade="all, delete-orphan")

    def __repr__(self):
        return f"<CropPrediction(id={self.id}, crop='{self.crop_type}', yield={self.predicted_yield})>"
