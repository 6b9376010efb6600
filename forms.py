from flask_wtf import FlaskForm
from wtforms.fields.numeric import FloatField
from wtforms.fields.simple import PasswordField, StringField
from wtforms.validators import DataRequired, Email, Length, NumberRange, Optional, ValidationError


def required_number(form, field):
    # InputRequired rejects a JSON 0
    if field.data is None:
        raise ValidationError("This field is required.")


class AuthForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email(message='Enter a valid email address.')])
    password = PasswordField("Password", validators=[
        DataRequired(),
        Length(min=6, message='Password must be at least 6 characters long.')
    ])


class PredictionForm(FlaskForm):
    crop_type = StringField("Crop Type", validators=[DataRequired()])
    field_area = FloatField("Field Area (hectares)", validators=[required_number, NumberRange(min=0)])
    soil_ph = FloatField("Soil pH", validators=[Optional()])
    soil_moisture = FloatField("Soil Moisture (%)", validators=[Optional()])
    nitrogen_level = FloatField("Nitrogen (N)", validators=[Optional()])
    phosphorus_level = FloatField("Phosphorus (P)", validators=[Optional()])
    potassium_level = FloatField("Potassium (K)", validators=[Optional()])
    temperature = FloatField("Temperature (C)", validators=[Optional()])
    rainfall = FloatField("Rainfall (mm)", validators=[Optional()])
    humidity = FloatField("Humidity (%)", validators=[Optional()])
    irrigation_method = StringField("Irrigation Method", validators=[Optional()])
    fertilizer_used = StringField("Fertilizer Used", validators=[Optional()])


class ProfileForm(FlaskForm):
    full_name = StringField("Full Name", validators=[Optional()])
    farm_name = StringField("Farm Name", validators=[Optional()])
    location = StringField("Location", validators=[Optional()])
    phone_number = StringField("Phone Number", validators=[Optional()])
    farm_size = FloatField("Farm Size (hectares)", validators=[Optional()])


class DeviceForm(FlaskForm):
    device_id = StringField("Device ID", validators=[DataRequired()])
    device_name = StringField("Device Name", validators=[DataRequired()])
    device_type = StringField("Device Type", validators=[Optional()])
    location = StringField("Location", validators=[Optional()])


class DeviceDataForm(FlaskForm):
    data_type = StringField("Data Type", validators=[DataRequired()])
    value = FloatField("Value", validators=[required_number])
    unit = StringField("Unit", validators=[Optional()])


class SaveCropForm(FlaskForm):
    crop = StringField("Crop", validators=[DataRequired()])
