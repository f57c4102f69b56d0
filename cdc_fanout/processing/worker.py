import time
from cdc_fanout.utils.logger import logger
from cdc_fanout.processing.coordinator import Coordinator
from cdc_fanout.utils.exceptions import ProcessingError


class Worker:
    """
    Main worker class that drives the coordinator batch by batch.

    This class manages the lifecycle of the replication consumption loop,
    backing off while the source is idle, and shuts down gracefully.
    """

    def __init__(self, coordinator: Coordinator, exit_on_idle: bool = False) -> None:
        """
        Initialize the worker with a coordinator.

        Args:
            coordinator: The coordinator responsible for batch delivery
            exit_on_idle: Stop once the source has no more batches, for
                finite sources such as files
        """
        self.coordinator = coordinator
        self.exit_on_idle = exit_on_idle
        self.running = True
        self._stopping = False

    def run(self) -> None:
        """
        Run the worker until it is stopped.

        Raises:
            ProcessingError: If processing fails.
        """
        if not self.coordinator:
            raise ProcessingError("No coordinator provided")

        try:
            logger.info("Worker started")
            self.coordinator.start()

            idle_count = 0
            max_idle_count = 10
            idle_sleep_time = 0.1

            while self.running:
                batch_processed = self.coordinator.process_next()

                if batch_processed:
                    idle_count = 0
                    continue

                if self.exit_on_idle:
                    logger.info("Source exhausted")
                    break

                idle_count += 1
                if idle_count >= max_idle_count:
                    # Exponential backoff with a cap
                    sleep_time = min(
                        idle_sleep_time * (1.5 ** min(idle_count - max_idle_count, 10)),
                        5,
                    )
                    time.sleep(sleep_time)

        except ProcessingError as e:
            logger.error(f"Worker error: {e}")
            raise
        except Exception as e:
            logger.error(f"Worker error: {e}")
            raise ProcessingError(f"Processing failed: {str(e)}")
        finally:
            # Only stop if not already stopping to prevent recursive calls
            if not self._stopping:
                self._stopping = True
                self._stop_coordinator()
                logger.info("Worker stopped gracefully")

    def _stop_coordinator(self) -> None:
        """Stop the coordinator, logging rather than masking the original error."""
        try:
            self.coordinator.stop()
        except Exception as e:
            logger.error(f"Error stopping coordinator: {e}")

    def stop(self) -> None:
        """
        Stop the worker gracefully.

        This method signals the worker to stop processing.
        """
        if self._stopping:
            logger.debug("Stop already in progress, ignoring duplicate call")
            return

        logger.info("Stop signal received")
        self.running = False
