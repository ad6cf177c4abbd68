"""
Shared pytest fixtures for people counter tests.
"""
import json

import cv2
import numpy as np
import pytest

from Tracker import Tracker


def person(cx, cy, w=40, h=60, score=0.9, label="person"):
    """Detection dict centered on (cx, cy)"""
    return {'box': [cx - w / 2, cy - h / 2, w, h], 'label': label, 'score': score}


@pytest.fixture
def make_person():
    return person


@pytest.fixture
def tracker():
    return Tracker()


@pytest.fixture
def config_file(tmp_path):
    """Write a config.json into tmp_path and return its path; accepts overrides"""
    def _write(**overrides):
        config = {
            "camera_id": "test-cam",
            "log_dir": str(tmp_path / "logs"),
            "draw": False,
            "show": False,
            "api_enabled": False,
        }
        config.update(overrides)
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config))
        return str(path)
    return _write


@pytest.fixture
def video_clip(tmp_path):
    """Write a 2 second, 10 fps MJPG clip into tmp_path and return its path"""
    path = str(tmp_path / "clip.avi")
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    for i in range(20):
        writer.write(np.full((48, 64, 3), i * 10, dtype=np.uint8))
    writer.release()
    return path
