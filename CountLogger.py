import os
import csv
import datetime
import logging


class CountLogger:
    """Writes count snapshots and occupancy alerts to a per-session CSV file"""

    def __init__(self, log_dir="logs", console_log=False, max_logs=10):
        self.console_log = console_log
        self.log_dir = log_dir
        self.max_logs = max_logs

        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.log_filename = os.path.join(log_dir, f"people_count_{timestamp}.csv")

        with open(self.log_filename, 'w', newline='') as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow(['Timestamp', 'Camera ID', 'Event', 'Count In', 'Count Out', 'Total'])

        # Clean up old log files
        self.cleanup_old_logs()

        if self.console_log:
            logging.info("Logging counts to: %s", self.log_filename)

    def log_count(self, record):
        """Log a count record produced after a crossing"""
        self._write_row(record['timestamp'], record['camera_id'], "Count",
                        record['count_in'], record['count_out'], record['total_count'])

    def log_alert(self, alert):
        """Log a threshold violation"""
        self._write_row(alert['timestamp'], alert['camera_id'], "Alert",
                        "", "", alert['count_value'])
        logging.warning("Occupancy alert on camera %s: %d people (limit %d)",
                        alert['camera_id'], alert['count_value'], alert['threshold_value'])

    def _write_row(self, timestamp, camera_id, event_type, count_in, count_out, total):
        if timestamp is None:
            timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        with open(self.log_filename, 'a', newline='') as csvfile:
            writer = csv.writer(csvfile)
            writer.writerow([timestamp, camera_id, event_type, count_in, count_out, total])
        if self.console_log:
            logging.info("[%s] %s: camera=%s in=%s out=%s total=%s",
                         timestamp, event_type, camera_id, count_in, count_out, total)

    def cleanup_old_logs(self):
        """Retain only the n most recent log files in the log directory."""
        if self.max_logs <= 0:  # Keep all logs if max_logs is 0 or negative
            return

        log_files = []
        for filename in os.listdir(self.log_dir):
            if filename.startswith("people_count_") and filename.endswith(".csv"):
                file_path = os.path.join(self.log_dir, filename)
                log_files.append((file_path, os.path.getmtime(file_path)))

        # Newest first; the current session file always survives
        log_files.sort(key=lambda x: (x[0] == self.log_filename, x[1]), reverse=True)

        for file_path, _ in log_files[self.max_logs:]:
            try:
                os.remove(file_path)
                logging.debug("Removed old log file: %s", file_path)
            except OSError as e:
                logging.error("Error removing log file %s: %s", file_path, e)
