"""
Tests for Tracker: association, crossing counts, cooldown and track lifecycle.
Timestamps are passed explicitly (seconds), frames 250 ms apart.
"""
import threading

import pytest

from CrossingDetector import ENTERING
from Tracker import Tracker

FRAME_HEIGHT = 200
STEP = 0.25


def run_frames(tracker, frames, start=0.0):
    """Feed a list of detection lists, returning the per-frame results"""
    results = []
    for i, detections in enumerate(frames):
        results.append(tracker.process_frame(detections, FRAME_HEIGHT, timestamp=start + i * STEP))
    return results


class TestDirection:
    def test_moving_down_through_line_is_one_entry(self, tracker, make_person):
        results = run_frames(tracker, [[make_person(100, 40)], [make_person(100, 120)]])
        assert results == [{'entries': 0, 'exits': 0}, {'entries': 1, 'exits': 0}]

    def test_moving_up_through_line_is_one_exit(self, tracker, make_person):
        results = run_frames(tracker, [[make_person(100, 120)], [make_person(100, 40)]])
        assert results[1] == {'entries': 0, 'exits': 1}

    def test_new_track_never_counts(self, tracker, make_person):
        result = tracker.process_frame([make_person(100, 120)], FRAME_HEIGHT, timestamp=0.0)
        assert result == {'entries': 0, 'exits': 0}

    def test_two_people_crossing_opposite_ways(self, tracker, make_person):
        run_frames(tracker, [[make_person(50, 30, score=0.9), make_person(300, 170, score=0.8)]])
        ids_before = {tid: t['center'][0] for tid, t in tracker.tracks.items()}

        result = tracker.process_frame([make_person(50, 130, score=0.9), make_person(300, 60, score=0.8)],
                                       FRAME_HEIGHT, timestamp=STEP)

        assert result == {'entries': 1, 'exits': 1}
        ids_after = {tid: t['center'][0] for tid, t in tracker.tracks.items()}
        assert ids_after == ids_before

    def test_line_position_is_configurable(self, make_person):
        tracker = Tracker({"line_position": 0.25})
        results = run_frames(tracker, [[make_person(100, 30)], [make_person(100, 70)]])
        assert results[1] == {'entries': 1, 'exits': 0}


class TestMovementFilters:
    def test_jitter_across_line_is_not_counted(self, tracker, make_person):
        results = run_frames(tracker, [[make_person(100, 98)], [make_person(100, 102)]])
        assert results[1] == {'entries': 0, 'exits': 0}

    def test_mostly_sideways_movement_is_not_counted(self, tracker, make_person):
        results = run_frames(tracker, [[make_person(100, 94)], [make_person(200, 102)]])
        assert len(tracker.tracks) == 1
        assert results[1] == {'entries': 0, 'exits': 0}


class TestCooldown:
    def test_no_double_count_while_oscillating(self, tracker, make_person):
        frames = [[make_person(100, 40)], [make_person(100, 120)]]
        frames += [[make_person(100, 80 if i % 2 == 0 else 120)] for i in range(10)]

        results = run_frames(tracker, frames)

        assert sum(r['entries'] for r in results) == 1
        assert sum(r['exits'] for r in results) == 0
        assert len(tracker.tracks) == 1

    def test_jitter_on_far_side_counts_once(self, tracker, make_person):
        frames = [[make_person(100, 40)], [make_person(100, 120)]]
        frames += [[make_person(100 + (i % 3), 120 + (i % 4))] for i in range(12)]

        results = run_frames(tracker, frames)

        assert sum(r['entries'] for r in results) == 1

    def test_crossing_suppressed_inside_cooldown(self, make_person):
        tracker = Tracker({"crossing_cooldown": 3})
        frames = [[make_person(100, 40)], [make_person(100, 120)], [make_person(100, 125)],
                  [make_person(100, 40)]]
        results = run_frames(tracker, frames)
        assert results[3] == {'entries': 0, 'exits': 0}

    def test_crossing_counts_after_cooldown(self, make_person):
        tracker = Tracker({"crossing_cooldown": 3})
        frames = [[make_person(100, 40)], [make_person(100, 120)], [make_person(100, 125)],
                  [make_person(100, 122)], [make_person(100, 40)]]
        results = run_frames(tracker, frames)
        assert results[4] == {'entries': 0, 'exits': 1}

    def test_cooldown_clears_direction(self, make_person):
        tracker = Tracker({"crossing_cooldown": 2})
        run_frames(tracker, [[make_person(100, 40)], [make_person(100, 120)]])
        track = next(iter(tracker.tracks.values()))
        assert track['crossed'] is True
        assert track['direction'] == ENTERING

        run_frames(tracker, [[make_person(100, 121)], [make_person(100, 122)]], start=2 * STEP)
        assert track['crossed'] is False
        assert track['direction'] is None
        assert track['frames_since_crossing'] == 0


class TestAssociation:
    def test_same_person_keeps_identity(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        first_id = next(iter(tracker.tracks))

        run_frames(tracker, [[make_person(104, 46)], [make_person(110, 52)]], start=STEP)

        assert list(tracker.tracks) == [first_id]
        assert tracker.tracks[first_id]['center'] == (110, 52)
        assert tracker.tracks[first_id]['previous_y'] == 46

    def test_matching_is_exclusive(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        first_id = next(iter(tracker.tracks))

        tracker.process_frame([make_person(110, 44, score=0.5), make_person(100, 42, score=0.9)],
                              FRAME_HEIGHT, timestamp=STEP)

        assert len(tracker.tracks) == 2
        # the more confident detection claims the existing track
        assert tracker.tracks[first_id]['center'] == (100, 42)

    def test_far_detection_creates_new_track(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        first_id = next(iter(tracker.tracks))

        tracker.process_frame([make_person(600, 40)], FRAME_HEIGHT, timestamp=STEP)

        assert first_id in tracker.tracks
        assert len(tracker.tracks) == 2

    def test_match_score_excludes_tracks_beyond_threshold(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        track = next(iter(tracker.tracks.values()))
        assert tracker.match_score([550, 10, 40, 60], track) is None
        assert tracker.match_score([80, 10, 40, 60], track) == pytest.approx(1.0)

    def test_unmatched_track_position_is_not_advanced(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        track = next(iter(tracker.tracks.values()))

        tracker.process_frame([], FRAME_HEIGHT, timestamp=STEP)

        assert track['center'] == (100, 40)
        assert track['last_seen'] == 0.0

    def test_filters_non_people_and_low_confidence(self, tracker, make_person):
        detections = [make_person(100, 40, label="car"), make_person(300, 40, score=0.1),
                      make_person(500, 40)]
        tracker.process_frame(detections, FRAME_HEIGHT, timestamp=0.0)
        assert len(tracker.tracks) == 1

    def test_negative_box_size_is_clamped(self, tracker):
        tracker.process_frame([{'box': [10, 10, -5, 20], 'label': 'person', 'score': 0.9}],
                              FRAME_HEIGHT, timestamp=0.0)
        track = next(iter(tracker.tracks.values()))
        assert track['box'] == [10.0, 10.0, 0.0, 20.0]

    def test_missing_box_is_rejected(self, tracker):
        with pytest.raises(ValueError):
            tracker.process_frame([{'label': 'person', 'score': 0.9}], FRAME_HEIGHT, timestamp=0.0)

    def test_position_history_is_bounded(self, make_person):
        tracker = Tracker({"max_positions": 3})
        run_frames(tracker, [[make_person(100, 10 + i)] for i in range(6)])
        track = next(iter(tracker.tracks.values()))
        assert track['positions'] == [13, 14, 15]


class TestLifecycle:
    def test_empty_frame_is_valid(self, tracker):
        assert tracker.process_frame([], FRAME_HEIGHT, timestamp=0.0) == {'entries': 0, 'exits': 0}
        assert tracker.tracks == {}

    def test_reidentified_across_dropped_frame(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)], [], [make_person(105, 45)]])
        assert len(tracker.tracks) == 1

    def test_dropped_frame_keeps_identity(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        first_id = next(iter(tracker.tracks))

        run_frames(tracker, [[], [make_person(105, 45)]], start=STEP)

        assert list(tracker.tracks) == [first_id]

    def test_dropout_mid_crossing_counts_once(self, tracker, make_person):
        results = run_frames(tracker, [[make_person(100, 40)], [make_person(100, 120)], [],
                                       [make_person(100, 130)], [make_person(100, 60)]])
        assert sum(r['entries'] for r in results) == 1
        assert sum(r['exits'] for r in results) == 0

    def test_unmatched_track_removed_after_grace_period(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        tracker.process_frame([], FRAME_HEIGHT, timestamp=0.6)
        assert tracker.tracks == {}

    def test_evicted_track_not_used_for_matching(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        first_id = next(iter(tracker.tracks))

        tracker.process_frame([], FRAME_HEIGHT, timestamp=3.6)
        tracker.process_frame([make_person(100, 40)], FRAME_HEIGHT, timestamp=3.7)

        assert first_id not in tracker.tracks
        assert len(tracker.tracks) == 1

    def test_timed_out_track_dropped_before_association(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        first_id = next(iter(tracker.tracks))

        tracker.process_frame([make_person(100, 120)], FRAME_HEIGHT, timestamp=4.0)

        assert first_id not in tracker.tracks
        assert len(tracker.tracks) == 1


class TestReset:
    def test_reset_is_idempotent(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40), make_person(300, 40)]])
        tracker.reset()
        tracker.reset()
        assert tracker.tracks == {}

    def test_first_detection_after_reset_creates_new_track(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        old_ids = set(tracker.tracks)

        tracker.reset()
        result = tracker.process_frame([make_person(100, 120)], FRAME_HEIGHT, timestamp=STEP)

        assert result == {'entries': 0, 'exits': 0}
        assert len(tracker.tracks) == 1
        assert not old_ids & set(tracker.tracks)

    def test_reset_from_another_thread(self, tracker, make_person):
        run_frames(tracker, [[make_person(100, 40)]])
        worker = threading.Thread(target=tracker.reset)
        worker.start()
        worker.join()
        assert tracker.tracks == {}


class TestConfiguration:
    def test_invalid_tracking_threshold(self):
        with pytest.raises(ValueError):
            Tracker({"tracking_threshold": 0})

    def test_invalid_cooldown(self):
        with pytest.raises(ValueError):
            Tracker({"crossing_cooldown": 0})

    def test_invalid_line_position(self):
        with pytest.raises(ValueError):
            Tracker({"line_position": 2})

    def test_custom_weights(self, make_person):
        tracker = Tracker({"match_weights": [1.0, 0.0, 0.0], "min_match_score": 0.5})
        run_frames(tracker, [[make_person(100, 40)]])
        # no overlap -> IoU-only score is 0, so a new track is created
        tracker.process_frame([make_person(100, 120)], FRAME_HEIGHT, timestamp=STEP)
        assert len(tracker.tracks) == 2
