"""
Tests for trigger evaluation.
"""

from rowgate.triggers import Trigger, build_args, evaluate, needs_snapshot, should_run


def send_welcome_email(before, after):
    """Stand-in job target."""


class TestNeedsSnapshot:
    def test_empty(self):
        assert needs_snapshot([]) is False
        assert needs_snapshot(None) is False

    def test_static_triggers_do_not_need_one(self):
        triggers = [Trigger("reindex"), Trigger("audit", args={"kind": "post"})]
        assert needs_snapshot(triggers) is False

    def test_predicate_needs_one(self):
        triggers = [Trigger("reindex"), Trigger("notify", when=lambda b, a: True)]
        assert needs_snapshot(triggers) is True

    def test_computed_args_need_one(self):
        assert needs_snapshot([Trigger("notify", args=lambda b, a: {"id": a.id})]) is True


class TestEvaluate:
    def test_no_args_yields_empty_mapping(self):
        assert build_args(Trigger("reindex"), None, object()) == {}

    def test_static_args_returned_verbatim(self):
        args = {"kind": "post"}
        assert build_args(Trigger("audit", args=args), None, None) is args

    def test_predicate_false_skips(self):
        trigger = Trigger("notify", when=lambda before, after: after["status"] == "published")
        assert should_run(trigger, None, {"status": "draft"}) is False
        assert evaluate(trigger, None, {"status": "draft"}) is None

    def test_args_producer_returning_none_vetoes(self):
        trigger = Trigger("notify", when=lambda b, a: True, args=lambda b, a: None)
        assert evaluate(trigger, None, {}) is None

    def test_accepted_dispatch(self):
        trigger = Trigger(
            "notify",
            args=lambda before, after: {"from": before["status"], "to": after["status"]},
            options={"queue": "mail"},
        )
        dispatch = evaluate(trigger, {"status": "draft"}, {"status": "published"})
        assert dispatch.target == "notify"
        assert dispatch.args == {"from": "draft", "to": "published"}
        assert dispatch.options == {"queue": "mail"}

    def test_callable_target_is_named_by_import_path(self):
        assert Trigger(send_welcome_email).target_name == "test_triggers.send_welcome_email"
