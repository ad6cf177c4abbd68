import logging

from ultralytics import YOLO


class ModelHandler:
    """Wraps the YOLO detector and returns detections as box/label/score dicts"""

    def __init__(self, model_path='yolov8n.pt', device='cpu', conf=0.1):
        self.model_path = model_path
        self.device = device
        self.conf = conf
        self.model = self.load_model()

    def load_model(self):
        try:
            model = YOLO(self.model_path)
            logging.info("Model loaded: %s", self.model_path)
            logging.info("Model classes: %s", model.names)
            return model
        except Exception as e:
            logging.error("Failed to load model %s: %s", self.model_path, e)
            raise

    def detect(self, frame, conf=None):
        """Run detection on a frame, returning [{'box': [x, y, w, h], 'label', 'score'}, ...]"""
        results = self.model.predict(frame, conf=self.conf if conf is None else conf,
                                     device=self.device, verbose=False)
        return self.to_detections(results, self.model.names)

    @staticmethod
    def to_detections(results, names):
        detections = []
        if not results or results[0].boxes is None:
            return detections

        for data in results[0].boxes.data.tolist():
            x1, y1, x2, y2, score, class_id = data[:6]
            detections.append({
                'box': [x1, y1, x2 - x1, y2 - y1],
                'label': str(names[int(class_id)]),
                'score': float(score),
            })
        return detections
