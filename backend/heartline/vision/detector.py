import cv2
import numpy as np
import threading
import logging

logger = logging.getLogger(__name__)

# Shared cascade and its lock; OpenCV classifiers are not thread safe
face_cascade = None
model_lock = threading.Lock()

CASCADE_FILE = "haarcascade_frontalface_default.xml"

def load_models():
    """
    Load the frontal-face Haar cascade once, thread safely.
    """
    global face_cascade
    with model_lock:
        if face_cascade is None:
            logger.info("Loading face cascade %s", CASCADE_FILE)
            cascade = cv2.CascadeClassifier(cv2.data.haarcascades + CASCADE_FILE)
            if cascade.empty():
                raise RuntimeError(f"Could not load {CASCADE_FILE}")
            face_cascade = cascade
    return face_cascade

def detect_faces(image_bytes: bytes, min_size: int = 30) -> dict:
    """
    Decode an uploaded photo and find frontal faces in it.

    Returns a dict with "success" (decoding worked), "faces" (count),
    "boxes" ([x, y, w, h] per face) and a "message".
    """
    try:
        np_data = np.frombuffer(image_bytes, np.uint8)
        frame = cv2.imdecode(np_data, cv2.IMREAD_COLOR)
    except Exception as e:
        return {"success": False, "faces": 0, "boxes": [], "message": f"Image decoding error: {e}"}

    if frame is None:
        return {"success": False, "faces": 0, "boxes": [], "message": "Could not decode image."}

    gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    gray = cv2.equalizeHist(gray)

    cascade = load_models()
    with model_lock:
        found = cascade.detectMultiScale(
            gray,
            scaleFactor=1.1,
            minNeighbors=5,
            minSize=(min_size, min_size),
        )

    boxes = [[int(x), int(y), int(w), int(h)] for (x, y, w, h) in found]
    return {
        "success": True,
        "faces": len(boxes),
        "boxes": boxes,
        "message": "Face detected." if boxes else "No face detected.",
    }
