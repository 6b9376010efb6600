from models.users_model import Users
from models.profile_model import Profile
from models.crop_prediction_model import CropPrediction
from models.iot_device_model import IotDevice
from models.device_data_model import DeviceData
from models.recommendation_model import Recommendation
from models.token_blocklist_model import TokenBlocklist
