import logging
import threading
import time
import uuid

from CrossingDetector import CrossingDetector, ENTERING, EXITING
from utility import box_center, distance, iou, sanitize_box, size_similarity


class Tracker:
    """Tracks people across frames and counts line crossings.

    One instance owns the registry for one camera. ``process_frame`` and
    ``reset`` are serialized with a lock, so the counting loop and a control
    thread can share an instance.
    """

    def __init__(self, config=None):
        config = config or {}
        self.tracking_threshold = config.get("tracking_threshold", 400)
        self.min_match_score = config.get("min_match_score", 0.3)
        self.iou_weight, self.distance_weight, self.size_weight = config.get("match_weights", (0.5, 0.3, 0.2))
        self.min_confidence = config.get("min_confidence", 0.2)
        self.person_label = config.get("person_label", "person")
        self.crossing_cooldown = config.get("crossing_cooldown", 15)
        self.track_timeout_ms = config.get("track_timeout_ms", 3000)
        self.grace_period_ms = config.get("grace_period_ms", 500)
        self.max_positions = config.get("max_positions", 30)

        if self.tracking_threshold <= 0:
            raise ValueError(f"tracking_threshold must be positive, got {self.tracking_threshold}")
        if self.crossing_cooldown < 1:
            raise ValueError(f"crossing_cooldown must be at least 1 frame, got {self.crossing_cooldown}")
        if self.track_timeout_ms < 0 or self.grace_period_ms < 0:
            raise ValueError("track_timeout_ms and grace_period_ms must be >= 0")

        self.crossing_detector = CrossingDetector(config)

        # Tracking data structures
        self.tracks = {}
        self._lock = threading.Lock()

    def process_frame(self, detections, frame_height, timestamp=None):
        """Update tracks with one frame of detections.

        detections: list of {'box': [x, y, w, h], 'label': str, 'score': float}
        frame_height: frame height in pixels
        timestamp: frame time in seconds, defaults to time.time()

        Returns {'entries': n, 'exits': m} for this frame only.
        """
        now_ms = (time.time() if timestamp is None else timestamp) * 1000.0
        people = self.filter_people(detections)
        line_y = self.crossing_detector.line_y(frame_height)

        with self._lock:
            self._purge_expired(now_ms)
            self._advance_cooldowns()

            entries = 0
            exits = 0
            claimed = set()

            # Higher confidence detections pick their match first
            for detection in sorted(people, key=lambda d: d['score'], reverse=True):
                box = detection['box']
                track_id = self._find_best_match(box, claimed)

                if track_id is None:
                    claimed.add(self._create_track(box, now_ms))
                    continue

                claimed.add(track_id)
                track = self._update_track(track_id, box, now_ms)

                direction = self.crossing_detector.evaluate(track_id, track, line_y)
                if direction == ENTERING:
                    entries += 1
                elif direction == EXITING:
                    exits += 1

            self._remove_departed(claimed, now_ms)

        return {'entries': entries, 'exits': exits}

    def reset(self):
        """Forget every tracked person"""
        with self._lock:
            self.tracks.clear()
        logging.info("Tracking state reset.")

    def filter_people(self, detections):
        """Keep confident person detections, with sanitized boxes"""
        people = []
        for detection in detections or []:
            if detection.get('label') != self.person_label:
                continue
            score = float(detection.get('score', 0.0))
            if score < self.min_confidence:
                continue
            people.append({
                'box': sanitize_box(detection.get('box')),
                'label': detection['label'],
                'score': score,
            })
        return people

    def match_score(self, box, track):
        """Weighted similarity between a detection box and a track, or None when out of range"""
        center_x, center_y = box_center(box)
        track_x, track_y = track['center']
        dist = distance(center_x, center_y, track_x, track_y)
        if dist > self.tracking_threshold:
            return None

        distance_score = max(0.0, 1 - dist / self.tracking_threshold)
        return (self.iou_weight * iou(box, track['box'])
                + self.distance_weight * distance_score
                + self.size_weight * size_similarity(box, track['box']))

    def _find_best_match(self, box, claimed):
        best_id = None
        best_score = self.min_match_score

        for track_id, track in self.tracks.items():
            if track_id in claimed:
                continue
            score = self.match_score(box, track)
            if score is not None and score > best_score:
                best_score = score
                best_id = track_id

        return best_id

    def _create_track(self, box, now_ms):
        track_id = uuid.uuid4().hex
        center_x, center_y = box_center(box)
        self.tracks[track_id] = {
            'box': box,
            'center': (center_x, center_y),
            'previous_x': center_x,
            'previous_y': center_y,
            'positions': [center_y],
            'last_seen': now_ms,
            'crossed': False,
            'direction': None,
            'frames_since_crossing': 0,
        }
        logging.debug("New person %s at y=%.0f", track_id, center_y)
        return track_id

    def _update_track(self, track_id, box, now_ms):
        track = self.tracks[track_id]
        track['previous_x'], track['previous_y'] = track['center']
        track['box'] = box
        track['center'] = box_center(box)
        track['last_seen'] = now_ms

        track['positions'].append(track['center'][1])
        # Keep only the most recent positions
        if len(track['positions']) > self.max_positions:
            track['positions'] = track['positions'][-self.max_positions:]
        return track

    def _purge_expired(self, now_ms):
        for track_id in list(self.tracks.keys()):
            if now_ms - self.tracks[track_id]['last_seen'] > self.track_timeout_ms:
                logging.debug("Track %s timed out", track_id)
                del self.tracks[track_id]

    def _advance_cooldowns(self):
        for track in self.tracks.values():
            if not track['crossed']:
                continue
            track['frames_since_crossing'] += 1
            if track['frames_since_crossing'] >= self.crossing_cooldown:
                track['crossed'] = False
                track['frames_since_crossing'] = 0
                track['direction'] = None

    def _remove_departed(self, claimed, now_ms):
        """Drop unmatched tracks once they are past the grace period"""
        for track_id in list(self.tracks.keys()):
            if track_id in claimed:
                continue
            track = self.tracks[track_id]
            if now_ms - track['last_seen'] > self.grace_period_ms:
                logging.debug("Person %s left view at y=%.0f", track_id, track['center'][1])
                del self.tracks[track_id]
