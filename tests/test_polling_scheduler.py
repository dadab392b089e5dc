import asyncio
from dataclasses import replace

from conftest import FAKE_FRAME, PendingClassifier, ScriptedClassifier, StaticFrameSource, make_detection
from models.session_models import SessionState, Transition
from services.openai.response_parser import ClassificationError
from services.realtime.polling_scheduler import PollingScheduler
from services.realtime.state_machine import SessionStateMachine


def _scheduler(classifier, frame_source=None, **kwargs):
    machine = SessionStateMachine()
    scheduler = PollingScheduler(machine, frame_source or StaticFrameSource(), classifier, interval=60, **kwargs)
    return machine, scheduler


def test_poll_classifies_with_current_state_and_applies_result():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        task = scheduler.poll()
        assert scheduler.outstanding
        await classifier.resolve(make_detection(is_applying_toothpaste=True))
        await task
        assert classifier.calls == [SessionState.IDLE]
        assert machine.state == SessionState.APPLYING_TOOTHPASTE
        assert not scheduler.outstanding
        assert scheduler.stats.requests == 1
        assert scheduler.stats.detections == 1

    asyncio.run(scenario())


def test_no_overlapping_classifications():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        first = scheduler.poll()
        await asyncio.sleep(0)
        assert scheduler.poll() is None
        assert scheduler.poll() is None
        assert len(classifier.calls) == 1
        await classifier.resolve(make_detection())
        await first
        second = scheduler.poll()
        await asyncio.sleep(0)
        assert second is not None
        assert len(classifier.calls) == 2
        await classifier.resolve(make_detection())
        await second

    asyncio.run(scenario())


def test_classification_failure_forfeits_tick():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        task = scheduler.poll()
        await classifier.fail()
        await task
        assert machine.state == SessionState.IDLE
        assert machine.session.last_error is None
        assert scheduler.stats.failures == 1
        assert not scheduler.outstanding

    asyncio.run(scenario())


def test_low_confidence_result_is_counted_and_ignored():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        task = scheduler.poll()
        await classifier.resolve(make_detection(is_applying_toothpaste=True, confidence=0.1))
        await task
        assert machine.state == SessionState.IDLE
        assert scheduler.stats.low_confidence == 1

    asyncio.run(scenario())


def test_late_result_after_state_advanced_is_discarded():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        machine.apply_transition(Transition(SessionState.APPLYING_TOOTHPASTE, "paste"))
        task = scheduler.poll()
        await asyncio.sleep(0)
        assert classifier.calls == [SessionState.APPLYING_TOOTHPASTE]
        machine.apply_transition(Transition(SessionState.BRUSHING, "brush"))
        message = machine.session.status_message
        epoch = machine.epoch
        await classifier.resolve(make_detection(is_brush_in_mouth=True))
        await task
        assert machine.state == SessionState.BRUSHING
        assert machine.session.status_message == message
        assert machine.epoch == epoch
        assert scheduler.stats.stale == 1
        assert scheduler.stats.detections == 0

    asyncio.run(scenario())


def test_result_issued_before_reset_is_discarded():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        task = scheduler.poll()
        machine.reset()
        await classifier.resolve(make_detection(is_applying_toothpaste=True))
        await task
        assert machine.state == SessionState.IDLE
        assert scheduler.stats.stale == 1

    asyncio.run(scenario())


def test_stale_result_still_counts_usage():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        seen = []
        scheduler.on_result = seen.append
        task = scheduler.poll()
        machine.reset()
        result = replace(make_detection(is_applying_toothpaste=True), input_tokens=700, output_tokens=40)
        await classifier.resolve(result)
        await task
        assert scheduler.stats.stale == 1
        assert scheduler.stats.input_tokens == 700
        assert scheduler.stats.output_tokens == 40
        assert seen == [result]
        assert machine.state == SessionState.IDLE

    asyncio.run(scenario())


def test_unexpected_classifier_error_forfeits_tick():
    async def scenario():
        classifier = ScriptedClassifier(RuntimeError("client bug"))
        machine, scheduler = _scheduler(classifier)
        task = scheduler.poll()
        await task
        assert task.exception() is None
        assert machine.state == SessionState.IDLE
        assert machine.session.last_error is None
        assert scheduler.stats.failures == 1
        assert not scheduler.outstanding

    asyncio.run(scenario())


def test_missing_frame_skips_tick():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier, StaticFrameSource(frame=None))
        assert scheduler.poll() is None
        assert classifier.calls == []
        assert scheduler.stats.requests == 0

    asyncio.run(scenario())


def test_camera_failure_moves_to_error():
    async def scenario():
        source = StaticFrameSource()
        source.failure = "permission denied"
        machine, scheduler = _scheduler(PendingClassifier(), source)
        assert scheduler.poll() is None
        assert machine.state == SessionState.ERROR
        assert machine.session.last_error == "permission denied"

    asyncio.run(scenario())


def test_terminal_state_does_not_poll():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        machine.fail("no camera")
        assert scheduler.poll() is None
        scheduler.start()
        assert not scheduler.running
        assert classifier.calls == []

    asyncio.run(scenario())


def test_stop_cancels_outstanding_classification():
    async def scenario():
        classifier = PendingClassifier()
        machine, scheduler = _scheduler(classifier)
        activity = []
        scheduler.on_activity = activity.append
        task = scheduler.poll()
        scheduler.stop()
        assert not scheduler.outstanding
        await asyncio.sleep(0)
        assert task.cancelled()
        assert activity == [True, False]
        assert machine.state == SessionState.IDLE

    asyncio.run(scenario())


def test_loop_polls_on_cadence_until_terminal():
    async def scenario():
        classifier = ScriptedClassifier(
            make_detection(is_applying_toothpaste=True),
            make_detection(is_brush_in_mouth=True),
        )
        machine = SessionStateMachine()
        scheduler = PollingScheduler(machine, StaticFrameSource(), classifier, interval=0.01)
        scheduler.start()
        scheduler.start()
        for _ in range(200):
            if machine.state == SessionState.BRUSHING:
                break
            await asyncio.sleep(0.01)
        assert machine.state == SessionState.BRUSHING
        machine.fail("camera lost")
        await asyncio.sleep(0.05)
        assert not scheduler.running
        await scheduler.aclose()

    asyncio.run(scenario())


def test_failures_from_scripted_classifier_do_not_stop_loop():
    async def scenario():
        classifier = ScriptedClassifier(
            ClassificationError("flaky"),
            make_detection(is_applying_toothpaste=True),
        )
        machine = SessionStateMachine()
        scheduler = PollingScheduler(machine, StaticFrameSource(FAKE_FRAME), classifier, interval=0.01)
        scheduler.start()
        for _ in range(200):
            if machine.state == SessionState.APPLYING_TOOTHPASTE:
                break
            await asyncio.sleep(0.01)
        await scheduler.aclose()
        assert machine.state == SessionState.APPLYING_TOOTHPASTE
        assert scheduler.stats.failures == 1

    asyncio.run(scenario())
