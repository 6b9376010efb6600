from flask import current_app

NO_SOIL_DATA_MESSAGE = "No soil data found for this device"


def soil_update_callback(device_id, soil, socketio):
    """Forwards a realtime soil snapshot to connected clients."""
    if soil:
        current_app.logger.debug(f"Soil update for {device_id}: {soil}")
        socketio.emit('soil_update', {"device_id": device_id, "soil": soil})
    else:
        # Clients drop the previous snapshot on this event
        current_app.logger.warning(f"Soil update for {device_id} carried no data.")
        socketio.emit('soil_error', {"device_id": device_id, "message": NO_SOIL_DATA_MESSAGE})


def prediction_created_callback(prediction, socketio):
    """Tells dashboards that a new prediction row exists."""
    socketio.emit('prediction_update', {
        "id": prediction.id,
        "crop_type": prediction.crop_type,
        "predicted_yield": prediction.predicted_yield,
        "confidence_score": prediction.confidence_score,
    })
