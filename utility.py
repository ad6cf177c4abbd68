import math


def get_horizontal_line_coordinates(width, height, position=0.5):
    """Endpoints of the crossing line at the given fraction of frame height, kept inside the frame"""
    y_position = min(height - 1, max(0, int(height * position)))
    return (0, y_position), (width - 1, y_position)


def sanitize_box(box):
    """Return box as [x, y, w, h] floats with negative sizes clamped to zero"""
    if box is None or len(box) != 4:
        raise ValueError(f"Box must have four values [x, y, w, h], got: {box!r}")
    x, y, w, h = (float(v) for v in box)
    return [x, y, max(0.0, w), max(0.0, h)]


def box_center(box):
    x, y, w, h = box
    return x + w / 2, y + h / 2


def box_area(box):
    return max(0.0, box[2]) * max(0.0, box[3])


def distance(ax, ay, bx, by):
    """Euclidean distance between two points"""
    return math.hypot(bx - ax, by - ay)


def iou(box_a, box_b):
    """Intersection over Union of two [x, y, w, h] boxes, in [0, 1]"""
    ax, ay, aw, ah = box_a
    bx, by, bw, bh = box_b

    x_left = max(ax, bx)
    y_top = max(ay, by)
    x_right = min(ax + max(0.0, aw), bx + max(0.0, bw))
    y_bottom = min(ay + max(0.0, ah), by + max(0.0, bh))

    if x_right <= x_left or y_bottom <= y_top:
        return 0.0

    intersection = (x_right - x_left) * (y_bottom - y_top)
    union = box_area(box_a) + box_area(box_b) - intersection
    if union <= 0.0:
        return 0.0

    return intersection / union


def size_similarity(box_a, box_b):
    """Ratio of the smaller box area to the larger one"""
    area_a = box_area(box_a)
    area_b = box_area(box_b)
    largest = max(area_a, area_b)
    if largest <= 0.0:
        return 0.0
    return min(area_a, area_b) / largest
