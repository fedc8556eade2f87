"""Tests for the recognition coordinator: triggering, debouncing and settlement."""

import asyncio

import pytest

from config import RecognitionConfig
from conftest import RecordingListener, stroke_events
from errors import InputPreconditionError
from models import InputAction, InputEvent
from recognition import AsyncioTimer, ManualTimer, RecognitionCoordinator, parse_answer


def run(coro_fn):
    return asyncio.run(coro_fn())


class TestParseAnswer:
    """Tests for reading recognized text as a number."""

    def test_digits(self):
        assert parse_answer("42") == 42
        assert parse_answer("007") == 7

    @pytest.mark.parametrize("text", [None, "", "4 2", "-3", "4.", "x"])
    def test_unparseable(self, text):
        with pytest.raises(ValueError):
            parse_answer(text)


class TestSingleGesture:
    """One stroke, recognized and settled."""

    def test_commit_after_timeout(self, coordinator, timer, listener, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            assert coordinator.status == "Recognizing..."
            assert coordinator.has_pending_timer

            timer.advance(999)
            assert listener.recognized == []
            timer.advance(1)

        run(scenario)
        assert listener.recognized == [("7", True)]
        assert coordinator.status == "Successful recognition: 7"
        assert len(coordinator.content) == 1
        assert coordinator.content[0].text == "7"
        assert coordinator.active_task is None
        assert not coordinator.has_pending_timer

    def test_ink_cleared_after_commit(self, coordinator, timer, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert coordinator.current_ink().is_empty
        assert not coordinator.accumulator.is_dirty

    def test_ink_kept_when_clearing_disabled(self, coordinator, timer, draw_stroke):
        coordinator.clear_current_ink_after_recognition = False

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert len(coordinator.current_ink().strokes) == 1
        assert coordinator.content[0].ink == coordinator.current_ink()

    def test_wrong_answer(self, coordinator, backend, timer, listener, draw_stroke):
        backend.candidates = ["8"]

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert listener.recognized == [("8", False)]

    def test_context_sent_to_backend(self, coordinator, backend, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()

        run(scenario)
        _, context = backend.calls[0]
        assert context.pre_context == "1234"
        assert context.language_tag == "en-US"


class TestDebounce:
    """Strokes written in quick succession settle as one answer."""

    def test_new_stroke_defuses_timer(
        self, coordinator, backend, timer, listener, draw_stroke
    ):
        backend.responses = [["1"], ["12"]]

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(500)
            draw_stroke(600, x0=40)
            await coordinator.wait_idle()
            timer.advance(999)
            assert listener.recognized == []
            timer.advance(1)

        run(scenario)
        assert listener.recognized == [("12", False)]
        assert len(backend.calls) == 2
        assert len(backend.calls[1][0].strokes) == 2
        assert len(coordinator.content) == 1

    def test_pointer_down_cancels_pending_timer(self, coordinator, timer, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            assert coordinator.has_pending_timer
            coordinator.on_input(InputEvent(action=InputAction.DOWN, x=0, y=0, t=100))
            assert not coordinator.has_pending_timer

        run(scenario)

    def test_burst_recognizes_once(self, coordinator, backend, timer, listener):
        """Two strokes fed before the loop runs produce a single backend call."""

        async def scenario():
            for event in stroke_events(0) + stroke_events(50, x0=40):
                coordinator.on_input(event)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert len(backend.calls) == 1
        assert len(backend.calls[0][0].strokes) == 2
        assert len(listener.recognized) == 1

    def test_superseded_task_never_commits(
        self, coordinator, backend, timer, listener, draw_stroke
    ):
        backend.gated = True
        backend.responses = [["1"], ["12"]]

        async def scenario():
            draw_stroke(0)
            while len(backend.gates) < 1:
                await asyncio.sleep(0)
            first = coordinator.active_task
            draw_stroke(600, x0=40)
            while len(backend.gates) < 2:
                await asyncio.sleep(0)
            assert first.cancelled()
            backend.release()
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert listener.recognized == [("12", False)]


class TestSettlement:
    """Each gesture is delivered at most once."""

    def test_commit_is_exactly_once(self, coordinator, timer, listener, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)
            coordinator.commit()
            timer.advance(5000)

        run(scenario)
        assert len(listener.recognized) == 1
        assert len(coordinator.content) == 1

    def test_commit_without_task_is_noop(self, coordinator, listener):
        coordinator.commit()
        assert listener.recognized == []
        assert coordinator.content == []

    def test_late_result_rearms_timer(
        self, coordinator, backend, timer, listener, draw_stroke
    ):
        backend.gated = True

        async def scenario():
            draw_stroke(0)
            while not backend.gates:
                await asyncio.sleep(0)
            timer.advance(1000)
            assert listener.recognized == []
            backend.release()
            await coordinator.wait_idle()
            assert coordinator.has_pending_timer
            timer.advance(1000)

        run(scenario)
        assert listener.recognized == [("7", True)]

    def test_late_result_waits_for_open_stroke(
        self, coordinator, backend, timer, listener, draw_stroke
    ):
        """A result arriving while the pen is down does not re-arm the timer."""
        backend.gated = True

        async def scenario():
            draw_stroke(0)
            while not backend.gates:
                await asyncio.sleep(0)
            timer.advance(1000)
            coordinator.on_input(InputEvent(action=InputAction.DOWN, x=0, y=0, t=1100))
            backend.release()
            for _ in range(5):
                await asyncio.sleep(0)
            assert not coordinator.has_pending_timer
            timer.advance(5000)
            assert listener.recognized == []

        run(scenario)

    def test_stroke_begun_before_request_runs(
        self, coordinator, backend, timer, listener
    ):
        """A request that finds the pen down leaves settlement to the next stroke end."""

        async def scenario():
            for event in stroke_events(0, points=2):
                coordinator.on_input(event)
            coordinator.on_input(InputEvent(action=InputAction.DOWN, x=40, y=0, t=20))
            await coordinator.wait_idle()
            assert not coordinator.has_pending_timer

            timer.advance(1000)
            assert listener.recognized == []
            coordinator.on_input(InputEvent(action=InputAction.MOVE, x=41, y=1, t=1030))
            coordinator.on_input(InputEvent(action=InputAction.UP, x=42, y=2, t=1040))
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert listener.recognized == [("7", True)]
        assert len(backend.calls[-1][0].strokes) == 2
        assert coordinator.current_ink().is_empty

    def test_commit_keeps_open_stroke(self, coordinator, listener, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            coordinator.on_input(InputEvent(action=InputAction.DOWN, x=9, y=0, t=50))
            coordinator.commit()

        run(scenario)
        assert listener.recognized == [("7", True)]
        assert coordinator.current_ink().is_empty
        assert coordinator.accumulator.stroke_open
        coordinator.on_input(InputEvent(action=InputAction.MOVE, x=9, y=1, t=60))
        assert coordinator.accumulator.pending_points()[-1].t == 60

    def test_capture_expected_before_notify(self, coordinator, timer, draw_stroke):
        """A listener advancing the exercise does not change the verdict of the others."""
        coordinator._content_listeners.clear()
        seen = []

        class Advancer(RecordingListener):
            def on_new_recognized_text(self, text, correct):
                super().on_new_recognized_text(text, correct)
                coordinator.expected_result = 99

        advancer = Advancer()
        observer = RecordingListener()
        coordinator.add_content_changed_listener(advancer)
        coordinator.add_content_changed_listener(observer)

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)
            seen.append(coordinator.expected_result)

        run(scenario)
        assert advancer.recognized == [("7", True)]
        assert observer.recognized == [("7", True)]
        assert seen == [99]

    def test_remove_listener(self, coordinator, timer, listener, draw_stroke):
        coordinator.remove_content_changed_listener(listener)

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert listener.recognized == []

    def test_misparsed_text(self, backend, timer, listener):
        config = RecognitionConfig(numeric_candidates_only=False)
        coordinator = RecognitionCoordinator(backend, config, timer)
        coordinator.set_active_model("en-US")
        coordinator.add_content_changed_listener(listener)
        backend.candidates = ["7?"]

        async def scenario():
            for event in stroke_events(0):
                coordinator.on_input(event)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert listener.misparsed == ["7?"]
        assert listener.recognized == []
        assert coordinator.status == "Successful recognition: 7?"


class TestReset:
    """Reset drops everything in flight."""

    def test_reset_clears_state(self, coordinator, timer, listener, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            task = coordinator.active_task
            coordinator.reset()
            assert task.settlement.value == "discarded"
            timer.advance(5000)

        run(scenario)
        assert listener.recognized == []
        assert coordinator.active_task is None
        assert coordinator.current_ink().is_empty
        assert coordinator.content == []
        assert coordinator.status == ""

    def test_reset_during_recognition(
        self, coordinator, backend, timer, listener, draw_stroke
    ):
        backend.gated = True

        async def scenario():
            draw_stroke(0)
            while not backend.gates:
                await asyncio.sleep(0)
            task = coordinator.active_task
            coordinator.reset()
            backend.release()
            await coordinator.wait_idle()
            timer.advance(5000)
            return task

        task = run(scenario)
        assert task.cancelled()
        assert task.result() is None
        assert listener.recognized == []

    def test_reset_during_readiness_check(self, backend, timer, listener):
        config = RecognitionConfig(trigger_recognition_after_input=False)
        coordinator = RecognitionCoordinator(backend, config, timer)
        coordinator.set_active_model("en-US")
        coordinator.add_content_changed_listener(listener)

        async def scenario():
            for event in stroke_events(0):
                coordinator.on_input(event)
            pending = asyncio.ensure_future(coordinator.recognize())
            await asyncio.sleep(0)
            coordinator.reset()
            return await pending

        assert run(scenario) is None
        assert backend.calls == []
        assert coordinator.active_task is None
        assert coordinator.status == ""

    def test_reset_current_ink_keeps_history(self, coordinator, timer, draw_stroke):
        coordinator.clear_current_ink_after_recognition = False

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        coordinator.reset_current_ink()
        assert coordinator.current_ink().is_empty
        assert len(coordinator.content) == 1


class TestRecognizeStatuses:
    """Requests that cannot run report why."""

    def test_empty_ink(self, coordinator, statuses, backend):
        assert asyncio.run(coordinator.recognize()) is None
        assert statuses == ["No recognition, ink unchanged or empty"]
        assert backend.calls == []

    def test_unchanged_ink(self, coordinator, backend, draw_stroke):
        coordinator.clear_current_ink_after_recognition = False

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            return await coordinator.recognize()

        assert run(scenario) is None
        assert coordinator.status == "No recognition, ink unchanged or empty"
        assert len(backend.calls) == 1

    def test_recognizer_not_set(self, backend, timer):
        coordinator = RecognitionCoordinator(
            backend, RecognitionConfig(trigger_recognition_after_input=False), timer
        )
        for event in stroke_events(0):
            coordinator.on_input(event)
        asyncio.run(coordinator.recognize())
        assert coordinator.status == "Recognizer not set"
        assert coordinator.accumulator.is_dirty

    def test_model_not_downloaded(self, coordinator, backend, draw_stroke):
        backend.downloaded.clear()

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()

        run(scenario)
        assert coordinator.status == "Model not downloaded yet"
        assert backend.calls == []
        # The ink stays dirty so a later request can pick it up
        assert coordinator.accumulator.is_dirty

    def test_backend_failure(self, coordinator, backend, timer, listener, draw_stroke):
        backend.error = RuntimeError("offline")

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert coordinator.status == "Recognition failed: offline"
        assert listener.recognized == []

    def test_no_result(self, coordinator, backend, timer, listener, draw_stroke):
        backend.candidates = ["abc"]

        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert coordinator.status == "No recognition result"
        assert listener.recognized == []

    def test_status_sequence(self, coordinator, statuses, timer, draw_stroke):
        async def scenario():
            draw_stroke(0)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert statuses == ["Recognizing...", "Successful recognition: 7"]


class TestInput:
    """Routing of raw pointer events."""

    def test_cancel_event_not_handled(self, coordinator):
        event = InputEvent(action=InputAction.CANCEL, x=0, y=0, t=0)
        assert coordinator.on_input(event) is False

    def test_cancel_drops_open_stroke(self, coordinator, timer, listener):
        assert coordinator.on_input(InputEvent(action=InputAction.DOWN, x=0, y=0, t=0))
        assert (
            coordinator.on_input(InputEvent(action=InputAction.CANCEL, x=0, y=0, t=5))
            is False
        )
        assert not coordinator.accumulator.stroke_open

        async def scenario():
            for event in stroke_events(10):
                coordinator.on_input(event)
            await coordinator.wait_idle()
            timer.advance(1000)

        run(scenario)
        assert listener.recognized == [("7", True)]
        assert [p.t for p in coordinator.content[0].ink.strokes[0].points] == [10, 20, 30]

    def test_move_without_down_raises(self, coordinator):
        with pytest.raises(InputPreconditionError):
            coordinator.on_input(InputEvent(action=InputAction.MOVE, x=0, y=0, t=0))

    def test_no_trigger_waits_for_explicit_request(self, backend, timer, listener):
        config = RecognitionConfig(trigger_recognition_after_input=False)
        coordinator = RecognitionCoordinator(backend, config, timer)
        coordinator.set_active_model("en-US")
        coordinator.expected_result = 7
        coordinator.add_content_changed_listener(listener)

        for event in stroke_events(0):
            assert coordinator.on_input(event) is True
        assert backend.calls == []

        async def scenario():
            text = await coordinator.recognize()
            timer.advance(1000)
            return text

        assert run(scenario) == "7"
        assert listener.recognized == [("7", True)]


class TestModelOperations:
    """Model selection and management through the coordinator."""

    def test_set_active_model(self, coordinator):
        coordinator.set_active_model("cs-CZ")
        assert coordinator.status == "Model set for language: cs-CZ"

    def test_set_unknown_model(self, coordinator):
        coordinator.set_active_model("xx-XX")
        assert coordinator.status == "No model for language: xx-XX"
        assert coordinator.model_manager.recognizer is None

    def test_download(self, coordinator, backend, statuses):
        backend.downloaded.clear()
        seen = []
        coordinator.set_downloaded_models_changed_listener(seen.append)

        assert asyncio.run(coordinator.download()) == "Downloaded model successfully"
        assert statuses == ["Download started.", "Downloaded model successfully"]
        assert seen == [{"en-US"}]

    def test_delete(self, coordinator, backend):
        assert asyncio.run(coordinator.delete_active_model()) == "Model successfully deleted"
        assert "en-US" not in backend.downloaded
        assert asyncio.run(coordinator.delete_active_model()) == "Model not downloaded yet"

    def test_refresh_survives_backend_failure(self, coordinator, backend):
        async def broken():
            raise RuntimeError("offline")

        backend.list_downloaded_languages = broken
        assert asyncio.run(coordinator.refresh_downloaded_models_status()) == set()


class TestAsyncioTimerIntegration:
    """The coordinator settles on a real event loop timer."""

    def test_settles_on_real_loop(self, backend, listener):
        config = RecognitionConfig(settlement_timeout_ms=20)
        coordinator = RecognitionCoordinator(backend, config, AsyncioTimer())
        coordinator.set_active_model("en-US")
        coordinator.expected_result = 7
        coordinator.add_content_changed_listener(listener)

        async def scenario():
            for event in stroke_events(0):
                coordinator.on_input(event)
            await coordinator.wait_idle()
            for _ in range(50):
                if listener.recognized:
                    break
                await asyncio.sleep(0.01)

        run(scenario)
        assert listener.recognized == [("7", True)]

    def test_manual_timer_is_default_for_tests(self, timer):
        assert isinstance(timer, ManualTimer)
