import logging
import random
import threading
import time
from typing import Callable
from .generator import encode_reading, generate_reading
from .producer import Outcome, Transport, describe_failure
from .scheduler import Schedule

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]
RngFactory = Callable[[], random.Random]

class Worker:
    """
    Runs the full post loop for one unit of concurrency.

    A worker may run on its own thread, so every log line carries its id
    as a ``[Thread {worker_id}]: `` prefix. The transport and random source
    belong to this worker alone.
    """

    def __init__(self, schedule: Schedule, worker_id: int, transport: Transport,
                 rng: random.Random, sleep: Callable[[float], None] = time.sleep):
        self.schedule = schedule
        self.worker_id = worker_id
        self.transport = transport
        self.rng = rng
        self.sleep = sleep
        self.posts_made = 0
        self.posts_failed = 0

    def run(self):
        if self.schedule.loop_indefinitely:
            # Only stops when the process is terminated
            while True:
                self.post_once()
                self.sleep(self.schedule.time_per_post)

        last = self.schedule.post_amount - 1
        for i in range(self.schedule.post_amount):
            self.post_once()
            if i != last:
                self.sleep(self.schedule.time_per_post)

        logger.info(f"[Thread {self.worker_id}]: Finished {self.posts_made} posts, {self.posts_failed} failed")

    def post_once(self) -> Outcome:
        reading = generate_reading(self.rng)
        payload = encode_reading(reading)
        logger.info(f"[Thread {self.worker_id}]: Sending POST request to {self.transport.url}")
        logger.debug(f"[Thread {self.worker_id}]: Post JSON: {payload.decode('utf-8')}")

        outcome = self.transport.submit(payload)
        self.posts_made += 1
        self.log_outcome(outcome)
        return outcome

    def log_outcome(self, outcome: Outcome):
        if outcome.failure is not None:
            self.posts_failed += 1
            logger.error(f"[Thread {self.worker_id}]: Response error from Ambi backend: {describe_failure(outcome.failure)}")
            logger.debug(f"[Thread {self.worker_id}]: {outcome.detail}")
            return

        message = f"[Thread {self.worker_id}]: Response from Ambi backend: {outcome.status_code}"
        if outcome.ok:
            logger.info(message)
        else:
            self.posts_failed += 1
            logger.error(message)
        logger.debug(f"[Thread {self.worker_id}]: Response from Ambi backend: {outcome.detail}")

class Dispatcher:
    """Fans a Schedule out over its workers and waits for all of them."""

    def __init__(self, schedule: Schedule, transport_factory: TransportFactory,
                 rng_factory: RngFactory = random.Random,
                 sleep: Callable[[float], None] = time.sleep):
        self.schedule = schedule
        self.transport_factory = transport_factory
        self.rng_factory = rng_factory
        self.sleep = sleep

    def run(self):
        if self.schedule.num_threads == 1:
            logger.debug("num_threads is set to 1, use current thread.")
            self.run_worker(0)
            return

        logger.debug(f"Spawning {self.schedule.num_threads} threads.")
        threads = []
        for i in range(self.schedule.num_threads):
            t = threading.Thread(target=self._guarded_run_worker, args=(i,), name=f"worker-{i}", daemon=True)
            t.start()
            threads.append(t)
        logger.debug("Threads spawned.")

        for t in threads:
            t.join()
        logger.debug("Threads joined.")

    def run_worker(self, worker_id: int):
        # Built here so the state is created on the worker's own thread
        with self.transport_factory() as transport:
            worker = Worker(self.schedule, worker_id, transport, self.rng_factory(), self.sleep)
            worker.run()

    def _guarded_run_worker(self, worker_id: int):
        try:
            self.run_worker(worker_id)
        except Exception:
            logger.exception(f"[Thread {worker_id}]: Worker crashed")
