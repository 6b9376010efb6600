"""
Camera capture for plant disease photos.

States: idle -> streaming -> captured -> analyzing -> result | error.
Every exit path (capture, stop, reset) releases the video device.
"""
import threading

import cv2

from disease_detection import DiseaseAnalysisError, analyze_plant_image

IDLE = "idle"
STREAMING = "streaming"
CAPTURED = "captured"
ANALYZING = "analyzing"
RESULT = "result"
ERROR = "error"

CAPTURE_FILENAME = "captured-image.jpg"


class CameraError(Exception):

    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self):
        return {"message": self.message, "code": self.code}


class CameraCapture:
    """One shared camera session. ``_lock`` serializes the device calls across request threads."""

    def __init__(self, device_index=0, width=1280, height=720, jpeg_quality=80, video_capture=None):
        self.device_index = device_index
        self.width = width
        self.height = height
        self.jpeg_quality = jpeg_quality
        self._video_capture = video_capture or cv2.VideoCapture
        self._stream = None
        self._lock = threading.RLock()
        self.state = IDLE
        self.image = None
        self.result = None
        self.error = None

    @property
    def active_tracks(self):
        return 0 if self._stream is None else 1

    def start(self):
        with self._lock:
            if self._stream is not None:
                return self

            stream = self._video_capture(self.device_index)
            if not stream.isOpened():
                stream.release()
                self.state = ERROR
                self.error = CameraError("Unable to access camera. Please check permissions.",
                                         "CAMERA_ACCESS_ERROR")
                raise self.error

            stream.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            stream.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            self._stream = stream
            self.image = None
            self.result = None
            self.error = None
            self.state = STREAMING
            return self

    def capture(self):
        """Grabs one frame as JPEG bytes and stops the stream. Without a stream, returns None."""
        with self._lock:
            if self._stream is None:
                return None

            ok, frame = self._stream.read()
            encoded = None
            if ok and frame is not None:
                ok, encoded = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality])

            if not ok or encoded is None:
                self.stop()
                self.state = ERROR
                self.error = CameraError("Unable to capture a frame from the camera.", "CAPTURE_ERROR")
                return None

            self.image = encoded.tobytes()
            self.state = CAPTURED
            self.stop()
            return self.image

    def stop(self):
        with self._lock:
            if self._stream is not None:
                self._stream.release()
                self._stream = None
            if self.state == STREAMING:
                self.state = IDLE

    def reset(self):
        with self._lock:
            self.stop()
            self.image = None
            self.result = None
            self.error = None
            self.state = IDLE

    def analyze(self):
        """Sends the captured photo for disease analysis. Errors are kept on ``self.error``."""
        if self.image is None:
            return None

        self.state = ANALYZING
        self.error = None
        self.result = None
        try:
            self.result = analyze_plant_image(self.image, CAPTURE_FILENAME, "image/jpeg")
            self.state = RESULT
        except DiseaseAnalysisError as e:
            self.error = e
            self.state = ERROR
        return self.result

    def to_dict(self):
        return {
            "state": self.state,
            "active_tracks": self.active_tracks,
            "has_image": self.image is not None,
            "result": self.result,
            "error": self.error.to_dict() if self.error else None,
        }
