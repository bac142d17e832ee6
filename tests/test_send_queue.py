"""Tests de la cola de envío.

Ejecutar:
    pytest tests/test_send_queue.py -v
"""

import logging
import threading
import time
from typing import List

import pytest

from traffic_agent.delivery import CHUNK_SIZE, NoopSender, SendQueue
from traffic_agent.metrics import Metric


class RecordingSender:
    """Sender que registra lotes; puede fallar las primeras N veces."""

    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.calls = 0
        self.batches: List[tuple] = []
        self.lock = threading.Lock()

    def send(self, host_id, metrics):
        with self.lock:
            self.calls += 1
            if self.fail_times > 0:
                self.fail_times -= 1
                raise RuntimeError("backend unavailable")
            self.batches.append((host_id, tuple(metrics)))


def metrics(n: int, prefix: str = "m") -> List[Metric]:
    return [Metric(name=f"{prefix}{i}", time=1_700_000_000, value=i) for i in range(n)]


def start(queue: SendQueue) -> threading.Thread:
    thread = threading.Thread(target=queue.serve, daemon=True)
    thread.start()
    assert queue.wait_serving(timeout=2)
    return thread


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def queue(sender) -> SendQueue:
    return SendQueue(sender, idle_wait=0.01, retry_backoff=0.01)


# =============================================================================
# ENCOLADO
# =============================================================================

class TestEnqueue:

    def test_chunks_of_fifty(self, queue):
        queue.enqueue("host-a", metrics(101))

        assert len(queue) == 3
        assert queue.stats["enqueued"] == 3

    def test_empty_metrics_not_enqueued(self, queue):
        queue.enqueue("host-a", [])
        assert len(queue) == 0

    def test_none_sender_is_noop(self):
        queue = SendQueue(None)
        assert isinstance(queue._sender, NoopSender)


# =============================================================================
# ENTREGA
# =============================================================================

class TestServe:

    def test_empty_queue_never_sends(self, queue, sender):
        thread = start(queue)
        queue.shutdown(timeout=2)
        thread.join(timeout=2)

        assert sender.calls == 0
        assert not thread.is_alive()

    def test_delivers_in_enqueue_order(self, queue, sender):
        queue.enqueue("host-a", metrics(1, "a"))
        queue.enqueue("host-b", metrics(1, "b"))
        queue.enqueue("host-a", metrics(1, "c"))

        start(queue)
        queue.shutdown(timeout=2)

        assert [(h, [m.name for m in batch]) for h, batch in sender.batches] == [
            ("host-a", ["a0"]),
            ("host-b", ["b0"]),
            ("host-a", ["c0"]),
        ]

    def test_sizes_of_chunks(self, queue, sender):
        queue.enqueue("host-a", metrics(101))

        start(queue)
        queue.shutdown(timeout=2)

        assert [len(batch) for _, batch in sender.batches] == [CHUNK_SIZE, CHUNK_SIZE, 1]
        flat = [m.name for _, batch in sender.batches for m in batch]
        assert flat == [f"m{i}" for i in range(101)]

    def test_retries_until_success(self):
        sender = RecordingSender(fail_times=3)
        queue = SendQueue(sender, idle_wait=0.01, retry_backoff=0.01)
        queue.enqueue("host-a", metrics(2))

        start(queue)
        queue.shutdown(timeout=5)

        assert sender.calls == 4
        assert len(sender.batches) == 1
        assert queue.stats["failed_attempts"] == 3
        assert queue.stats["delivered"] == 1
        assert len(queue) == 0

    def test_head_blocks_following_messages(self):
        sender = RecordingSender(fail_times=2)
        queue = SendQueue(sender, idle_wait=0.01, retry_backoff=0.01)
        queue.enqueue("host-a", metrics(1, "first"))
        queue.enqueue("host-a", metrics(1, "second"))

        start(queue)
        queue.shutdown(timeout=5)

        assert [batch[0].name for _, batch in sender.batches] == ["first0", "second0"]


# =============================================================================
# APAGADO
# =============================================================================

class TestShutdown:

    def test_double_shutdown_runs_once(self, queue, sender):
        thread = start(queue)

        callers = [threading.Thread(target=queue.shutdown, args=(2,)) for _ in range(2)]
        for t in callers:
            t.start()
        for t in callers:
            t.join(timeout=3)

        thread.join(timeout=2)
        assert not thread.is_alive()
        assert queue.alive is False

        # Una tercera llamada retorna de inmediato
        queue.shutdown()

    def test_deadline_gives_up_on_failing_backend(self):
        sender = RecordingSender(fail_times=10**6)
        queue = SendQueue(sender, idle_wait=0.01, retry_backoff=0.01)
        queue.enqueue("host-a", metrics(1))
        start(queue)

        started = time.monotonic()
        queue.shutdown(timeout=0.3)

        assert time.monotonic() - started < 2
        assert len(queue) == 1

    def test_drain_logs_about_once_per_second(self, caplog):
        class SlowSender(RecordingSender):
            def send(self, host_id, metrics):
                time.sleep(0.01)
                super().send(host_id, metrics)

        sender = SlowSender()
        queue = SendQueue(sender, idle_wait=0.01, retry_backoff=0.01)
        queue.enqueue("host-a", metrics(CHUNK_SIZE * 20))
        start(queue)

        with caplog.at_level(logging.INFO, logger="traffic_agent.delivery.send_queue"):
            queue.shutdown(timeout=5)

        draining = [r for r in caplog.records if "draining" in r.getMessage()]
        assert len(draining) == 1
        assert len(sender.batches) == 20

    def test_shutdown_without_serve_returns(self, queue):
        queue.enqueue("host-a", metrics(1))
        queue.shutdown(timeout=1)
        assert queue.alive is False
        # serve posterior no arranca
        queue.serve()

    def test_service_identity(self, queue, target):
        assert queue.target_id == ""
        assert queue.alive is True
        queue.reload(target)
