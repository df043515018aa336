"""
CardTracker state machine: one overlay clear per frame, detection only while
idle, tracking only while tracking, extraction seeded with the pre-update
rectangle.
"""
from __future__ import annotations

import pytest

from cardscan.core.contracts import TrackerState, card_aspect_range
from cardscan.tracking.tracker import CardTracker

from conftest import (
    CARD,
    CARD_MOVED,
    TEXT_INSIDE,
    TEXT_OUTSIDE,
    RecordingObserver,
    ScriptedVision,
    SpyExtractor,
)


def _tracker(vision, observer, extractor=None):
    return CardTracker(vision, extractor or SpyExtractor(), observers=[observer])


def test_idle_without_rectangle_stays_idle_and_clears_once(frame, observer):
    t = _tracker(ScriptedVision(), observer)
    assert t.process_frame(frame) is TrackerState.IDLE
    assert observer.events == [("clear",)]
    assert t.candidate is None


def test_qualifying_rectangle_starts_tracking(frame, observer):
    vision = ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE]])
    t = _tracker(vision, observer)
    assert t.process_frame(frame) is TrackerState.TRACKING
    assert observer.events == [("clear",), ("region", CARD)]
    assert t.candidate == CARD


def test_detection_uses_card_aspect_range(frame, observer):
    vision = ScriptedVision()
    _tracker(vision, observer).process_frame(frame)
    assert ("detect_rectangle", card_aspect_range()) in vision.calls
    lo, hi = card_aspect_range()
    assert lo == pytest.approx(85.60 / 53.98 * 0.95)
    assert hi == pytest.approx(85.60 / 53.98 * 1.10)


@pytest.mark.parametrize("texts", [[], [TEXT_OUTSIDE]])
def test_rectangle_without_contained_text_is_rejected(frame, observer, texts):
    t = _tracker(ScriptedVision(detections=[CARD], texts=[texts]), observer)
    assert t.process_frame(frame) is TrackerState.IDLE
    assert observer.events == [("clear",)]


def test_only_first_text_region_is_checked(frame, observer):
    t = _tracker(ScriptedVision(detections=[CARD], texts=[[TEXT_OUTSIDE, TEXT_INSIDE]]), observer)
    assert t.process_frame(frame) is TrackerState.IDLE
    assert observer.events == [("clear",)]
    assert t.candidate is None


def test_first_text_region_inside_qualifies(frame, observer):
    t = _tracker(ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE, TEXT_OUTSIDE]]), observer)
    assert t.process_frame(frame) is TrackerState.TRACKING
    assert observer.events == [("clear",), ("region", CARD)]


def test_tracking_failure_returns_to_idle(frame, observer):
    vision = ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE]], tracks=[None])
    extractor = SpyExtractor()
    t = _tracker(vision, observer, extractor)
    t.process_frame(frame)
    observer.events.clear()

    assert t.process_frame(frame) is TrackerState.IDLE
    assert observer.events == [("clear",)]
    assert t.candidate is None
    assert extractor.dispatched == []


def test_tracking_success_updates_candidate_and_extracts_previous_region(frame, observer):
    vision = ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE]], tracks=[CARD_MOVED])
    extractor = SpyExtractor()
    t = _tracker(vision, observer, extractor)
    t.process_frame(frame)
    observer.events.clear()

    assert t.process_frame(frame) is TrackerState.TRACKING
    assert observer.events == [("clear",), ("region", CARD_MOVED)]
    assert t.candidate == CARD_MOVED
    assert extractor.dispatched == [CARD]
    assert ("track_rectangle", CARD) in vision.calls


def test_exactly_one_path_per_frame(frame, observer):
    vision = ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE]], tracks=[CARD_MOVED, None])
    t = _tracker(vision, observer)

    t.process_frame(frame)   # detect
    t.process_frame(frame)   # track ok
    t.process_frame(frame)   # track lost
    t.process_frame(frame)   # detect again

    names = [c[0] for c in vision.calls]
    assert names == [
        "detect_rectangle", "detect_text_regions",
        "track_rectangle",
        "track_rectangle",
        "detect_rectangle", "detect_text_regions",
    ]
    assert observer.kinds().count("clear") == 4


def test_detection_error_is_treated_as_no_result(frame, observer, caplog):
    vision = ScriptedVision(detections=[RuntimeError("backend down")], texts=[[TEXT_INSIDE]])
    t = _tracker(vision, observer)
    assert t.process_frame(frame) is TrackerState.IDLE
    assert observer.events == [("clear",)]
    assert "backend down" in caplog.text


def test_tracking_error_drops_to_idle(frame, observer):
    vision = ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE]], tracks=[ValueError("bad frame")])
    t = _tracker(vision, observer)
    t.process_frame(frame)
    assert t.process_frame(frame) is TrackerState.IDLE
    assert t.candidate is None


def test_failing_observer_does_not_block_others(frame, observer):
    class Broken(RecordingObserver):
        def on_overlay_clear_requested(self):
            raise RuntimeError("ui gone")

    t = CardTracker(ScriptedVision(), SpyExtractor(), observers=[Broken(), observer])
    assert t.process_frame(frame) is TrackerState.IDLE
    assert observer.events == [("clear",)]


def test_observer_registration(frame, observer):
    t = CardTracker(ScriptedVision(), SpyExtractor())
    t.add_observer(observer)
    t.add_observer(observer)
    t.process_frame(frame)
    assert observer.events == [("clear",)]

    t.remove_observer(observer)
    t.process_frame(frame)
    assert observer.events == [("clear",)]


def test_reset_clears_candidate_silently(frame, observer):
    t = _tracker(ScriptedVision(detections=[CARD], texts=[[TEXT_INSIDE]]), observer)
    t.process_frame(frame)
    observer.events.clear()
    t.reset()
    assert t.state is TrackerState.IDLE
    assert observer.events == []
