import cv2
import datetime
import logging
import threading
import time

from ConfigManager import ConfigManager
from CountLogger import CountLogger
from ModelHandler import ModelHandler
from Tracker import Tracker
from VideoSource import VideoSource
from Visualizer import Visualizer
from web_api_client import WebAPIClient


class PeopleCounter:
    def __init__(self, config_file, camera_id=None, detector=None):
        logging.info("Initializing PeopleCounter...")
        self.config_manager = ConfigManager(config_file)
        self.tracker_config = self.config_manager.get_tracker_config()
        self.model_config = self.config_manager.get_model_config()
        self.video_config = self.config_manager.get_video_config()
        self.log_config = self.config_manager.get_log_config()
        self.api_config = self.config_manager.get_api_config()
        self.alert_config = self.config_manager.get_alert_config()
        logging.info("Configuration loaded.")

        self.camera_id = camera_id or self.api_config["camera_id"]
        self.detector = detector
        self.tracker = Tracker(self.tracker_config)
        self.visualizer = Visualizer(self.tracker_config["line_position"],
                                     self.video_config["zone_band_percent"])

        self.entry_count = 0
        self.exit_count = 0
        self.total_count = 0
        # Guards the counts and the tracker against reset from the control thread
        self._count_lock = threading.Lock()
        self.running = False
        self.source = None
        self.logger = None
        self.web_client = None
        self.last_annotated_frame = None

    def _init(self):
        logging.info("Initializing internal components...")

        if self.detector is None:
            self.detector = ModelHandler(model_path=self.model_config["model_filename"],
                                         device=self.model_config["device"],
                                         conf=self.model_config["model_confidence"])

        self.logger = CountLogger(log_dir=self.log_config["log_dir"],
                                  console_log=self.log_config["console_log"],
                                  max_logs=self.log_config["max_logs"])

        if self.api_config["api_enabled"] and self.web_client is None:
            self.web_client = WebAPIClient(self.api_config["web_path"], self.camera_id,
                                           alert_path=self.api_config["alert_path"])
            self.web_client.start()
        logging.info("Initialization complete.")

    def start(self, video_source):
        logging.info("Starting PeopleCounter with video source: %s", video_source)
        self._init()
        self.reset_counts()

        self.source = VideoSource(video_source, self.video_config)
        if not self.source.initialize():
            self._cleanup_resources()
            raise RuntimeError(f"Could not open video source: {video_source}")

        self.running = True
        try:
            self._run_loop()
        finally:
            self.running = False
            self._cleanup_resources()
        logging.info("PeopleCounter stopped.")

    def _run_loop(self):
        interval = self.video_config["detection_interval"]
        is_camera = self.source.isCamera()
        last_processed = None

        while self.running:
            loop_start = time.time()
            success, frame = self.source.read()
            if not success:
                logging.warning("Failed to read frame. Stopping...")
                break

            timestamp = self.source.get_timestamp()
            if is_camera:
                self.process_frame(frame, timestamp)
                # Sample the live feed at a fixed cadence
                elapsed = time.time() - loop_start
                if elapsed < interval:
                    time.sleep(interval - elapsed)
            elif last_processed is None or timestamp - last_processed >= interval:
                last_processed = timestamp
                self.process_frame(frame, timestamp)

    def process_frame(self, frame, timestamp=None):
        """Detect, track and count one frame. Returns this frame's entries/exits or None on detector failure."""
        try:
            detections = self.detector.detect(frame)
        except Exception as e:
            logging.error("Detection failed, skipping frame: %s", e)
            return None

        with self._count_lock:
            result = self.tracker.process_frame(detections, frame.shape[0], timestamp)
            record = self._apply_counts(result)
            counts = self._counts()

        if record is not None:
            self._publish(record)

        if self.video_config["draw"]:
            annotated = frame.copy()
            self.visualizer.draw_overlay(annotated, self.tracker.filter_people(detections),
                                         show_line=True, counts=counts)
            self.last_annotated_frame = annotated
            if self.video_config["show"]:
                cv2.imshow(f"People Counter {self.camera_id}", annotated)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    self.stop()

        return result

    def _apply_counts(self, result):
        """Accumulate one frame's crossings; returns the count record, or None when nothing crossed"""
        entries = result['entries']
        exits = result['exits']
        if not entries and not exits:
            return None

        self.entry_count += entries
        self.exit_count += exits
        self.total_count += entries
        self.total_count = max(0, self.total_count - exits)
        logging.info("Entries: %d, Exits: %d, Current total: %d",
                     self.entry_count, self.exit_count, self.total_count)

        return {
            'camera_id': self.camera_id,
            'timestamp': datetime.datetime.now().isoformat(),
            'count_in': self.entry_count,
            'count_out': self.exit_count,
            'total_count': self.total_count,
        }

    def _publish(self, record):
        if self.logger is not None:
            self.logger.log_count(record)
        if self.web_client is not None:
            self.web_client.add_count(record)

        self._check_alert(record)

    def _check_alert(self, record):
        if not self.alert_config["alert_enabled"]:
            return
        limit = self.alert_config["threshold_limit"]
        if record['total_count'] <= limit:
            return

        alert = {
            'camera_id': self.camera_id,
            'timestamp': record['timestamp'],
            'count_value': record['total_count'],
            'threshold_value': limit,
        }
        if self.logger is not None:
            self.logger.log_alert(alert)
        if self.web_client is not None:
            self.web_client.add_alert(alert)

    def reset_counts(self):
        with self._count_lock:
            self.entry_count = 0
            self.exit_count = 0
            self.total_count = 0
            self.tracker.reset()

    def _cleanup_resources(self):
        logging.info("Cleaning up resources...")
        if self.source:
            self.source.release()
        if self.web_client is not None:
            self.web_client.stop()
            self.web_client = None
        if self.video_config["show"]:
            cv2.destroyAllWindows()
        logging.info("Cleanup complete.")

    def stop(self):
        logging.info("Stopping PeopleCounter...")
        self.running = False

    def get_entry_count(self):
        return self.entry_count

    def get_exit_count(self):
        return self.exit_count

    def get_total_count(self):
        return self.total_count

    def get_counts(self):
        with self._count_lock:
            return self._counts()

    def _counts(self):
        return {
            'entries': self.entry_count,
            'exits': self.exit_count,
            'total': self.total_count,
        }

    def get_tracked_count(self):
        return len(self.tracker.tracks)
