import pytest

from lungecount.config import LungeConfig
from lungecount.counter import CallbackListener, ExerciseRepCounter, LungeRepCounter
from lungecount.pose import Landmark, LandmarkIdx
from lungecount.reps import FEEDBACK_LOWER_LEFT, FEEDBACK_LOWER_RIGHT, FEEDBACK_REP_DONE, Leg, RepState

from .conftest import FakeClock, make_landmarks


@pytest.fixture
def counter(listener, clock):
    return LungeRepCounter(listener, clock=clock)


def test_missing_landmarks_emit_nothing(counter, listener):
    for landmarks in (None, [], [Landmark(0.5, 0.5)] * 10):
        state = counter.set_results(landmarks)
        assert state["status"] == "No pose"
        assert state["progress"] is None
    assert listener.events == []
    assert counter.smoother.values == []


def test_degenerate_geometry_emits_nothing(counter, listener):
    landmarks = make_landmarks(80.0, 178.0)
    landmarks[LandmarkIdx.LEFT_KNEE] = landmarks[LandmarkIdx.LEFT_HIP]
    state = counter.set_results(landmarks)
    assert state["status"] == "Unreliable pose"
    assert state["left_knee_angle"] is None
    assert listener.events == []
    assert counter.state == RepState()


def test_progress_emitted_once_per_sample(counter, listener):
    for _ in range(3):
        counter.set_results(make_landmarks(135.0, 170.0))
    assert listener.progress == pytest.approx([0.5, 0.5, 0.5])


def test_progress_is_smoothed(counter, listener):
    for angle in (180.0, 180.0, 180.0, 180.0, 90.0, 90.0):
        counter.set_results(make_landmarks(angle, 180.0))
    assert listener.progress[4] == pytest.approx(0.2)
    assert listener.progress[5] == pytest.approx(0.4)


def test_left_rep_after_right_counts(listener, clock):
    state = RepState(last_leg=Leg.RIGHT, last_rep_time=clock.now - 2.0)
    counter = LungeRepCounter(listener, clock=clock, state=state)
    result = counter.set_results(make_landmarks(80.0, 178.0))
    assert result["rep_completed"]
    assert result["rep_count"] == 1
    assert counter.state.last_leg is Leg.LEFT
    assert listener.reps == 1
    # Right knee is above 100 and the previous rep was right, so the cue fires first.
    assert listener.feedback == [FEEDBACK_LOWER_RIGHT, FEEDBACK_REP_DONE]
    assert result["feedback"] == [FEEDBACK_LOWER_RIGHT, FEEDBACK_REP_DONE]
    assert result["last_leg"] == "left"


def test_shallow_left_gets_feedback_and_no_rep(listener, clock):
    counter = LungeRepCounter(listener, clock=clock, state=RepState(Leg.LEFT, clock.now - 5.0))
    result = counter.set_results(make_landmarks(105.0, 150.0))
    assert listener.feedback == [FEEDBACK_LOWER_LEFT]
    assert listener.reps == 0
    assert not result["rep_completed"]
    assert counter.rep_count == 0


def test_emission_order_within_sample(counter, listener):
    counter.set_results(make_landmarks(80.0, 178.0))
    kinds = [e[0] for e in listener.events]
    assert kinds == ["progress", "rep", "feedback"]


def test_feedback_reads_leg_from_before_rep_check(listener, clock):
    # Right rep completes this sample while left knee is shallow; the left
    # cue comes from the previous (left) rep, then the rep fires.
    counter = LungeRepCounter(listener, clock=clock, state=RepState(Leg.LEFT, clock.now - 5.0))
    counter.set_results(make_landmarks(178.0, 80.0))
    assert listener.feedback == [FEEDBACK_LOWER_LEFT, FEEDBACK_REP_DONE]
    assert counter.state.last_leg is Leg.RIGHT


def test_no_lower_on_right_in_same_sample_as_right_rep(listener, clock):
    counter = LungeRepCounter(listener, clock=clock)
    counter.set_results(make_landmarks(178.0, 80.0))
    assert listener.feedback == [FEEDBACK_REP_DONE]


def test_debounce_and_alternation_end_to_end(counter, listener, clock):
    counter.set_results(make_landmarks(80.0, 178.0))
    clock.advance(0.4)
    counter.set_results(make_landmarks(178.0, 80.0))
    assert counter.rep_count == 1
    clock.advance(1.0)
    counter.set_results(make_landmarks(80.0, 178.0))
    assert counter.rep_count == 1
    counter.set_results(make_landmarks(178.0, 80.0))
    assert counter.rep_count == 2
    assert listener.reps == 2


def test_full_session(counter, listener, clock):
    standing = make_landmarks(178.0, 178.0)
    left_down = make_landmarks(80.0, 178.0)
    right_down = make_landmarks(178.0, 80.0)
    for pose in (standing, left_down, left_down, standing, right_down, standing, left_down):
        counter.set_results(pose)
        clock.advance(0.6)
    assert counter.rep_count == 3
    assert len(listener.progress) == 7


def test_reset_clears_counts_and_window(counter, listener):
    counter.set_results(make_landmarks(80.0, 178.0))
    counter.reset()
    assert counter.rep_count == 0
    assert counter.state == RepState()
    assert counter.smoother.values == []


def test_config_window_size(listener, clock):
    counter = LungeRepCounter(listener, config=LungeConfig(smoothing_window=1), clock=clock)
    counter.set_results(make_landmarks(180.0, 180.0))
    counter.set_results(make_landmarks(90.0, 180.0))
    assert listener.progress[-1] == pytest.approx(1.0)


def test_callback_listener():
    seen = []
    counter = LungeRepCounter(CallbackListener(on_rep=lambda: seen.append("rep")), clock=lambda: 0.0)
    counter.set_results(make_landmarks(80.0, 178.0))
    assert seen == ["rep"]


def test_default_listener_is_silent():
    counter = LungeRepCounter(clock=lambda: 0.0)
    result = counter.set_results(make_landmarks(80.0, 178.0))
    assert result["rep_count"] == 1


def test_plain_tuples_accepted(counter, listener):
    counter.set_results([tuple(p) for p in make_landmarks(135.0, 170.0)])
    assert listener.progress == pytest.approx([0.5])


def test_base_counter_is_abstract():
    with pytest.raises(TypeError):
        ExerciseRepCounter()


def test_minimal_subclass_reaches_listener(listener):
    class CountEverySample(ExerciseRepCounter):
        def set_results(self, landmarks):
            self.increment_rep_count()
            return {"rep_count": self.rep_count}

    counter = CountEverySample(listener)
    assert counter.set_results(None) == {"rep_count": 1}
    assert listener.reps == 1


def test_backwards_clock_keeps_counting(listener):
    clock = FakeClock(start=1000.0)
    counter = LungeRepCounter(listener, clock=clock)
    counter.set_results(make_landmarks(80.0, 178.0))
    clock.now = 1.0
    result = counter.set_results(make_landmarks(178.0, 80.0))
    assert result["rep_completed"]
    assert result["rep_count"] == 2
    assert listener.reps == 2
