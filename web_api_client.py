import queue
import time
import logging
from threading import Thread

import requests


class WebAPIClient:
    """Sends count records and alerts to the web API on a background thread"""

    def __init__(self, web_path, camera_id, alert_path=None, max_retries=3, retry_delay=2):
        self.web_path = web_path
        self.alert_path = alert_path or web_path
        self.camera_id = camera_id
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sent_queue = queue.Queue()
        self.running = False
        self.thread = None

    def start(self):
        self.running = True
        self.thread = Thread(target=self.run, daemon=True)
        self.thread.start()

    def stop(self, timeout=5):
        self.running = False
        if self.thread is not None:
            self.thread.join(timeout=timeout)

    def run(self):
        while self.running:
            try:
                url, payload = self.sent_queue.get(timeout=0.1)
            except queue.Empty:
                continue
            self.send(url, payload)
            self.sent_queue.task_done()

    def send(self, url, payload):
        """POST one payload, retrying connection failures with exponential backoff"""
        retry_delay = self.retry_delay
        for attempt in range(self.max_retries):
            try:
                response = requests.post(url=url, json=payload, timeout=5)
                response.raise_for_status()
                logging.info("Successfully sent %s to %s", payload, url)
                return True
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                logging.warning("Attempt %d/%d to %s failed: %s", attempt + 1, self.max_retries, url, e)
                if attempt < self.max_retries - 1:
                    time.sleep(retry_delay)
                    retry_delay *= 2  # Exponential backoff: 2s, 4s, 8s
            except requests.exceptions.RequestException as e:
                logging.error("Unexpected error sending to %s: %s", url, e)
                return False
        logging.warning("Max retries reached for %s. Discarding.", payload)
        return False

    def add_count(self, record):
        self.sent_queue.put((self.web_path, dict(record, camera_id=str(self.camera_id))))

    def add_alert(self, alert):
        self.sent_queue.put((self.alert_path, dict(alert, camera_id=str(self.camera_id))))
