from db import db


class Recommendation(db.Model):
    """Advisory row attached to a prediction."""
    __tablename__ = 'recommendations'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    prediction_id = db.Column(db.Integer, db.ForeignKey("crop_predictions.id", ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String, nullable=False)
    category = db.Column(db.String, nullable=False)
    priority = db.Column(db.String, nullable=False, default='medium')
    description = db.Column(db.String, nullable=False)
    expected_impact = db.Column(db.String, nullable=True)
    implementation_cost = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=db.func.current_timestamp())

    crop_predictions = db.relationship("CropPrediction", back_populates="recommendation_items", lazy=True)

    def __repr__(self):
        return f"<Recommendation(id={self.id}, prediction={self.prediction_id}, category='{self.category}')>"
