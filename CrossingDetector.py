import logging

ENTERING = "entering"
EXITING = "exiting"


class CrossingDetector:
    """Decides when a tracked person crosses the horizontal counting line"""

    def __init__(self, config):
        self.line_position = config.get("line_position", 0.5)
        self.min_distance = config.get("min_distance_for_crossing", 5)
        self.vertical_bias = config.get("vertical_bias", 0.1)

        if not 0.0 < self.line_position < 1.0:
            raise ValueError(f"line_position must be between 0 and 1, got {self.line_position}")
        if self.min_distance < 0:
            raise ValueError(f"min_distance_for_crossing must be >= 0, got {self.min_distance}")

    def line_y(self, frame_height):
        return frame_height * self.line_position

    def evaluate(self, track_id, track, line_y):
        """Check a just-updated track and return ENTERING, EXITING or None.

        Tracks still in cooldown are skipped. A counted crossing puts the
        track into cooldown and records its direction.
        """
        if track['crossed']:
            return None

        previous_y = track['previous_y']
        center_x, center_y = track['center']

        crossed_down = previous_y < line_y < center_y
        crossed_up = previous_y > line_y > center_y
        if not (crossed_down or crossed_up):
            return None

        vertical_movement = abs(center_y - previous_y)
        horizontal_movement = abs(center_x - track['previous_x'])

        is_vertical = vertical_movement > horizontal_movement * self.vertical_bias
        if vertical_movement <= self.min_distance or not is_vertical:
            logging.debug("Crossing rejected for %s: vertical=%.1f horizontal=%.1f",
                          track_id, vertical_movement, horizontal_movement)
            return None

        direction = ENTERING if crossed_down else EXITING
        track['crossed'] = True
        track['direction'] = direction
        track['frames_since_crossing'] = 0

        logging.info("Person %s %s | y: %.0f -> %.0f | line: %.0f",
                     track_id, direction, previous_y, center_y, line_y)
        return direction
