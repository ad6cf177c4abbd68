import cv2
import os
import logging
import time


class VideoSource:
    """Handles video input from a webcam index, a video file or a stream URL"""

    def __init__(self, source, config=None):
        config = config or {}
        self.source = self._normalize(source)
        self.cap = None
        self.frame_width = config.get("video_width", 640)
        self.frame_height = config.get("video_height", 480)

    @staticmethod
    def _normalize(source):
        # "0" from the command line or JSON means webcam 0
        if isinstance(source, str) and source.isdigit():
            return int(source)
        return source

    def initialize(self):
        """Open the capture device"""
        logging.info("Opening video source: %s", self.source)
        self.cap = cv2.VideoCapture(self.source)
        if not self.cap.isOpened():
            logging.error("Failed to open video source: %s", self.source)
            return False

        if self.isCamera():
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.frame_width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.frame_height)

        return True

    def read(self):
        """Read a frame from the video source"""
        return self.cap.read()

    def get_timestamp(self):
        """Frame time in seconds: media position for files, wall clock otherwise"""
        if not self.isCamera() and self.cap is not None:
            # The first frame of a file reports 0 ms
            return max(0.0, self.cap.get(cv2.CAP_PROP_POS_MSEC)) / 1000.0
        return time.time()

    def release(self):
        """Release the video source"""
        if self.cap:
            self.cap.release()
            self.cap = None

    def isCamera(self):
        return (
                isinstance(self.source, int) or
                (isinstance(self.source, str) and not os.path.isfile(self.source))
        )
