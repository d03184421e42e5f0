"""Tests for the stale-result guard."""

from formula_plotter.coordinates import pan
from formula_plotter.models import CanvasSize, Formula
from formula_plotter.scheduler import PassTracker, SamplingKey


def _key(frame, expression="sin(x)", formula_id="f1", **kwargs):
    formula = Formula(id=formula_id, expression=expression, **kwargs)
    return SamplingKey.for_pass(formula, frame, CanvasSize(1000, 800))


class TestSamplingKey:
    """Tests for SamplingKey equality."""

    def test_equal_for_same_state(self, frame):
        assert _key(frame) == _key(frame)

    def test_parameter_order_irrelevant(self, frame):
        a = _key(frame, parameters={"a": 1.0, "b": 2.0})
        b = _key(frame, parameters={"b": 2.0, "a": 1.0})
        assert a == b
        assert hash(a) == hash(b)

    def test_changes_with_frame_and_expression(self, frame):
        assert _key(frame) != _key(pan(frame, 1.0, 0.0))
        assert _key(frame) != _key(frame, expression="cos(x)")


class TestPassTracker:
    """Tests for PassTracker.schedule / accept."""

    def test_accepts_current(self, frame):
        tracker = PassTracker()
        key = _key(frame)
        ticket = tracker.schedule(key)
        assert tracker.pending("f1")
        assert tracker.accept(ticket, key)
        assert not tracker.pending("f1")

    def test_newer_ticket_supersedes(self, frame):
        tracker = PassTracker()
        key = _key(frame)
        old = tracker.schedule(key)
        new = tracker.schedule(key)
        assert new.generation > old.generation
        assert not tracker.accept(old, key)
        assert tracker.accept(new, key)

    def test_stale_key_rejected(self, frame):
        tracker = PassTracker()
        ticket = tracker.schedule(_key(frame))
        assert not tracker.accept(ticket, _key(pan(frame, 5.0, 5.0)))

    def test_accepted_ticket_consumed(self, frame):
        tracker = PassTracker()
        key = _key(frame)
        ticket = tracker.schedule(key)
        assert tracker.accept(ticket, key)
        assert not tracker.accept(ticket, key)

    def test_formulas_independent(self, frame):
        tracker = PassTracker()
        k1 = _key(frame, formula_id="f1")
        k2 = _key(frame, formula_id="f2")
        t1 = tracker.schedule(k1)
        t2 = tracker.schedule(k2)
        assert tracker.accept(t1, k1)
        assert tracker.accept(t2, k2)

    def test_cancel(self, frame):
        tracker = PassTracker()
        key = _key(frame)
        ticket = tracker.schedule(key)
        tracker.cancel("f1")
        assert not tracker.accept(ticket, key)

    def test_is_current_does_not_consume(self, frame):
        tracker = PassTracker()
        key = _key(frame)
        ticket = tracker.schedule(key)
        assert tracker.is_current(ticket, key)
        assert tracker.pending("f1")
        assert tracker.accept(ticket, key)

    def test_is_current_false_after_edit(self, frame):
        tracker = PassTracker()
        ticket = tracker.schedule(_key(frame))
        assert not tracker.is_current(ticket, _key(frame, expression="cos(x)"))
        newer = tracker.schedule(_key(frame, expression="cos(x)"))
        assert not tracker.is_current(ticket, _key(frame))
        assert tracker.is_current(newer, _key(frame, expression="cos(x)"))

    def test_stale_pass_leaves_cached_points(self, frame, canvas, sampler, make_formula):
        """A pass skipped by is_current never reaches the sampler's cache."""
        tracker = PassTracker()
        old = make_formula("sin(x)")
        ticket = tracker.schedule(SamplingKey.for_pass(old, frame, canvas))
        edited = make_formula("x*x")
        fresh = sampler.sample(edited, frame, canvas)
        current = SamplingKey.for_pass(edited, frame, canvas)
        if tracker.is_current(ticket, current):
            sampler.sample(old, ticket.key.frame, ticket.key.canvas)
        assert sampler.last_full_pass(edited.id) == fresh
