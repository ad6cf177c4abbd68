import cv2
import numpy as np

from utility import get_horizontal_line_coordinates

EXIT_ZONE_COLOR = (68, 68, 239)  # red, BGR
THRESHOLD_ZONE_COLOR = (246, 130, 59)  # blue
ENTRY_ZONE_COLOR = (94, 197, 34)  # green
BOX_COLOR = (0, 255, 255)


class Visualizer:
    """Draws detections, counting zones and counts onto BGR frames"""

    def __init__(self, line_position=0.5, zone_band_percent=0.18):
        self.line_position = line_position
        self.zone_band_percent = zone_band_percent

    def draw_overlay(self, frame, detections, show_line=True, counts=None):
        """Paint detection boxes, and optionally the zone bands and crossing line, onto frame in place"""
        height, width = frame.shape[:2]

        if show_line:
            self._draw_zones(frame, width, height)

        for detection in detections:
            x, y, w, h = (int(v) for v in detection['box'])
            cv2.rectangle(frame, (x, y), (x + w, y + h), BOX_COLOR, 2)
            cv2.putText(frame, f"{detection['label']} {detection['score']:.2f}", (x, max(0, y - 5)),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, BOX_COLOR, 1, cv2.LINE_AA)

        if counts is not None:
            self._draw_counts(frame, counts)

        return frame

    def _draw_zones(self, frame, width, height):
        start, end = get_horizontal_line_coordinates(width, height, self.line_position)
        line_y = start[1]
        band = int(height * self.zone_band_percent)
        upper = max(0, line_y - band)
        lower = min(height, line_y + band)

        overlay = frame.copy()
        cv2.rectangle(overlay, (0, 0), (width, upper), EXIT_ZONE_COLOR, -1)
        cv2.rectangle(overlay, (0, upper), (width, lower), THRESHOLD_ZONE_COLOR, -1)
        cv2.rectangle(overlay, (0, lower), (width, height), ENTRY_ZONE_COLOR, -1)
        cv2.addWeighted(overlay, 0.15, frame, 0.85, 0, frame)

        # Band boundaries
        self._dashed_line(frame, (start[0], upper), (end[0], upper), THRESHOLD_ZONE_COLOR, 1, 5, 3)
        self._dashed_line(frame, (start[0], lower), (end[0], lower), THRESHOLD_ZONE_COLOR, 1, 5, 3)
        # Crossing line
        self._dashed_line(frame, start, end, THRESHOLD_ZONE_COLOR, 4, 15, 8)

        self._label(frame, "EXIT ZONE", (width - 150, max(15, upper - 15)), EXIT_ZONE_COLOR)
        self._label(frame, "ENTRY ZONE", (width - 150, min(height - 5, lower + 30)), ENTRY_ZONE_COLOR)
        self._label(frame, "CROSSING LINE", (15, max(15, line_y - 10)), THRESHOLD_ZONE_COLOR)

    @staticmethod
    def _dashed_line(frame, start, end, color, thickness, dash, gap):
        (x_start, y), (x_end, _) = start, end
        for x in np.arange(x_start, x_end, dash + gap):
            cv2.line(frame, (int(x), y), (int(min(x + dash, x_end)), y), color, thickness)

    @staticmethod
    def _label(frame, text, origin, color):
        # Black outline under the colored text
        cv2.putText(frame, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 3, cv2.LINE_AA)
        cv2.putText(frame, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, color, 2, cv2.LINE_AA)

    @staticmethod
    def _draw_counts(frame, counts):
        cv2.putText(frame, f"Entries: {counts['entries']}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, ENTRY_ZONE_COLOR, 2)
        cv2.putText(frame, f"Exits: {counts['exits']}", (10, 60),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, EXIT_ZONE_COLOR, 2)
        cv2.putText(frame, f"Total: {counts['total']}", (10, 90),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
