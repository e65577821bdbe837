"""Tests for promise_when() — awaitable conditional waits."""

import asyncio
import threading

import pytest

from watchable import NotAContainerError, Watchable


class TestPromiseWhen:
    def test_resolves_when_condition_becomes_true(self):
        async def main():
            w = Watchable(0)
            fut = w.promise_when(3)
            assert not fut.done()
            w.value = 3
            return await asyncio.wait_for(fut, 1)

        assert asyncio.run(main()) is None

    def test_already_true_resolves_on_a_later_turn(self):
        async def main():
            w = Watchable("ready")
            fut = w.promise_when("ready")
            assert not fut.done()
            await fut
            assert len(w._listeners) == 0

        asyncio.run(main())

    def test_predicate_form(self):
        async def main():
            w = Watchable([])
            fut = w.promise_when(lambda e: len(e.root) == 2)
            w.value.append("a")
            w.value.append("b")
            await asyncio.wait_for(fut, 1)

        asyncio.run(main())

    def test_path_form(self):
        async def main():
            w = Watchable({"job": {"state": "queued"}})
            fut = w.promise_when("job.state", "done")
            w.value["job"]["state"] = "running"
            assert not fut.done()
            w.value["job"]["state"] = "done"
            await asyncio.wait_for(fut, 1)

        asyncio.run(main())

    def test_path_predicate_form(self):
        async def main():
            w = Watchable({"progress": 0})
            fut = w.promise_when("progress", lambda e: e.res >= 100)
            for pct in (10, 50, 100):
                w.value["progress"] = pct
            await asyncio.wait_for(fut, 1)

        asyncio.run(main())

    def test_resolves_only_once(self):
        async def main():
            w = Watchable(0)
            fut = w.promise_when(lambda e: e.new_value > 0)
            w.value = 1
            w.value = 2
            await asyncio.wait_for(fut, 1)
            assert len(w._listeners) == 0

        asyncio.run(main())

    def test_write_from_another_thread(self):
        async def main():
            w = Watchable(0)
            fut = w.promise_when(lambda e: e.new_value == 99)
            t = threading.Thread(target=setattr, args=(w, "value", 99))
            t.start()
            await asyncio.wait_for(fut, 2)
            t.join()

        asyncio.run(main())

    def test_timeout_removes_listener(self):
        async def main():
            w = Watchable(0)
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(w.promise_when(5), 0.01)
            await asyncio.sleep(0)
            assert len(w._listeners) == 0

        asyncio.run(main())

    def test_scalar_root_path_form_raises(self):
        async def main():
            with pytest.raises(NotAContainerError):
                Watchable(1).promise_when("a", 1)

        asyncio.run(main())

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            Watchable(0).promise_when(1)

    def test_wrong_argument_count(self):
        with pytest.raises(TypeError):
            Watchable(0).promise_when()
