"""Tests for the fair register lock and concurrent instruction streams."""

from __future__ import annotations

import threading
import time

import pytest
import torch

import qassembler as qa
from qassembler.core import FairLock


def _wait_for(predicate, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.001)


class TestFairLock:
    """Tests for FairLock."""

    def test_acquire_release(self):
        """Test basic locking state."""
        lock = FairLock()
        assert not lock.locked()
        with lock:
            assert lock.locked()
        assert not lock.locked()

    def test_reentrant(self):
        """Test the holder may acquire again."""
        lock = FairLock()
        with lock:
            with lock:
                assert lock.locked()
            assert lock.locked()
        assert not lock.locked()

    def test_release_by_non_owner(self):
        """Test releasing an unheld lock raises RuntimeError."""
        lock = FairLock()
        with pytest.raises(RuntimeError, match="does not hold"):
            lock.release()

    def test_fifo_order(self):
        """Test waiters are served in the order they queued."""
        lock = FairLock()
        order: list[int] = []
        threads = []

        lock.acquire()
        for i in range(5):
            thread = threading.Thread(target=self._record, args=(lock, order, i))
            thread.start()
            threads.append(thread)
            _wait_for(lambda n=i + 1: lock.waiting() == n)
        lock.release()

        for thread in threads:
            thread.join(timeout=5.0)
        assert order == [0, 1, 2, 3, 4]
        assert lock.waiting() == 0

    @staticmethod
    def _record(lock: FairLock, order: list, i: int) -> None:
        with lock:
            order.append(i)


class TestConcurrentInstructions:
    """Tests for concurrent APPLY and MEASURE on shared registers."""

    def test_concurrent_applies_are_atomic(self, ctx):
        """Test interleaved self-inverse gates from many threads cancel out."""
        ctx.initialize("R", 3)
        ctx.select("Q", "R", 1, 1)
        ctx.select("P", "R", 2, 1)
        barrier = threading.Barrier(4)
        errors: list[Exception] = []

        def worker() -> None:
            try:
                barrier.wait()
                for _ in range(50):
                    ctx.apply("G_X", "Q")
                    ctx.apply("G_H", "P")
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30.0)

        assert not errors
        expected = torch.zeros(8, dtype=torch.complex128)
        expected[0] = 1.0
        assert torch.allclose(ctx.amplitudes("R"), expected, atol=1e-10)

    def test_locked_block_excludes_other_threads(self, ctx):
        """Test a locked() block runs without interleaved instructions."""
        ctx.initialize("R", 1)
        started = threading.Event()
        done = threading.Event()

        def other() -> None:
            started.set()
            ctx.apply("G_X", "R")
            done.set()

        with ctx.locked("R") as register:
            thread = threading.Thread(target=other)
            thread.start()
            started.wait(timeout=5.0)
            _wait_for(lambda: register.lock.waiting() == 1)
            assert not done.is_set()
            ctx.apply("G_H", "R")
            ctx.apply("G_H", "R")
        thread.join(timeout=5.0)

        assert done.is_set()
        expected = torch.tensor([0.0, 1.0], dtype=torch.complex128)
        assert torch.allclose(ctx.amplitudes("R"), expected)

    def test_concurrent_measurements_get_unique_names(self, ctx):
        """Test racing MEASUREs into one name bind it exactly once."""
        ctx.initialize("R", 2)
        barrier = threading.Barrier(4)
        outcomes: list[str] = []
        failures: list[Exception] = []

        def worker() -> None:
            barrier.wait()
            try:
                outcomes.append(ctx.measure("R", "RES").bitstring)
            except qa.DuplicateName as exc:
                failures.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10.0)

        assert outcomes == ["00"]
        assert len(failures) == 3

    def test_locked_block_while_other_thread_reinitializes(self, ctx):
        """Test a lock holder can still issue instructions while a reset waits."""
        ctx.initialize("R", 2)
        finished = threading.Event()

        def reset() -> None:
            ctx.reinitialize("R", [1, 1])
            finished.set()

        with ctx.locked("R") as register:
            thread = threading.Thread(target=reset)
            thread.start()
            _wait_for(lambda: register.lock.waiting() == 1)
            view = ctx.select("Q", "R", 0, 1)
            ctx.apply("G_X", "Q")
            assert "Q" in ctx.names()
            assert not finished.is_set()
        thread.join(timeout=5.0)

        assert finished.is_set()
        assert not view.is_valid
        expected = torch.zeros(4, dtype=torch.complex128)
        expected[3] = 1.0
        assert torch.equal(ctx.amplitudes("R"), expected)

    def test_operator_build_does_not_block_other_instructions(self, ctx, monkeypatch):
        """Test APPLY proceeds while another thread is still building an operator."""
        import qassembler.context as context_module

        real_tensor = context_module.tensor
        building = threading.Event()
        release = threading.Event()

        def slow_tensor(*args, **kwargs):
            building.set()
            release.wait(timeout=5.0)
            return real_tensor(*args, **kwargs)

        monkeypatch.setattr(context_module, "tensor", slow_tensor)
        ctx.initialize("R", 1)
        thread = threading.Thread(target=ctx.tensor, args=("U", "G_H", "G_H"))
        thread.start()
        try:
            assert building.wait(timeout=5.0)
            start = time.monotonic()
            ctx.apply("G_X", "R")
            assert time.monotonic() - start < 0.5
            assert ctx.operator("G_Z").arity == 1
            assert "U" not in ctx
            with pytest.raises(qa.DuplicateName):
                ctx.initialize("U", 1)
        finally:
            release.set()
            thread.join(timeout=5.0)

        assert ctx.operator("U").arity == 2
        expected = torch.tensor([0.0, 1.0], dtype=torch.complex128)
        assert torch.equal(ctx.amplitudes("R"), expected)
