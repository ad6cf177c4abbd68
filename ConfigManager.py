import json
import logging


class ConfigManager:
    def __init__(self, config_file):
        self.config_file = config_file
        self.config = self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        try:
            with open(self.config_file, 'r') as f:
                return json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logging.error("Error loading configuration %s: %s", self.config_file, e)
            return {}

    def get(self, key, default=None):
        """Get configuration value with fallback to default"""
        return self.config.get(key, default)

    def get_tracker_config(self):
        """Get tracking and line crossing configuration"""
        return {
            "line_position": self.get("line_position", 0.5),
            "tracking_threshold": self.get("tracking_threshold", 400),
            "min_match_score": self.get("min_match_score", 0.3),
            "match_weights": tuple(self.get("match_weights", [0.5, 0.3, 0.2])),
            "min_confidence": self.get("min_confidence", 0.2),
            "person_label": self.get("person_label", "person"),
            "crossing_cooldown": self.get("crossing_cooldown", 15),
            "min_distance_for_crossing": self.get("min_distance_for_crossing", 5),
            "vertical_bias": self.get("vertical_bias", 0.1),
            "track_timeout_ms": self.get("track_timeout_ms", 3000),
            "grace_period_ms": self.get("grace_period_ms", 500),
            "max_positions": self.get("max_positions", 30)
        }

    def get_model_config(self):
        """Get model related configuration"""
        return {
            "model_filename": self.get("model_filename", "yolov8n.pt"),
            "device": self.get("device", "cpu"),
            "model_confidence": self.get("model_confidence", 0.1)
        }

    def get_video_config(self):
        """Get video processing configuration"""
        return {
            "video_width": self.get("video_width", 640),
            "video_height": self.get("video_height", 480),
            "detection_interval": self.get("detection_interval", 0.25),
            "show": self.get("show", False),
            "draw": self.get("draw", True),
            "zone_band_percent": self.get("zone_band_percent", 0.18)
        }

    def get_log_config(self):
        """Get count logging configuration"""
        return {
            "log_dir": self.get("log_dir", "logs"),
            "console_log": self.get("console_log", False),
            "max_logs": self.get("max_logs", 10)
        }

    def get_api_config(self):
        """Get web API configuration"""
        return {
            "api_enabled": self.get("api_enabled", False),
            "web_path": self.get("web_path", ""),
            "alert_path": self.get("alert_path", ""),
            "camera_id": self.get("camera_id", "default")
        }

    def get_alert_config(self):
        """Get occupancy alert configuration"""
        return {
            "alert_enabled": self.get("alert_enabled", False),
            "threshold_limit": self.get("threshold_limit", 50)
        }
