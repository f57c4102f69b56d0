from typing import Iterator, Optional
from cdc_fanout.utils.logger import logger
from cdc_fanout.sources.base import ChangeBatch, ChangeSource
from cdc_fanout.state.base import StateManager
from cdc_fanout.utils.exceptions import CdcFanoutError, ProcessingError
from cdc_fanout.processing.processors import BatchProcessor


class StateCheckpointManager:
    """
    Handles the checkpointing of positions from a change source to a state manager.
    """

    def __init__(self, source: ChangeSource, state_manager: Optional[StateManager]):
        self.source = source
        self.state_manager = state_manager
        self._last_saved_position: str = ""

    def load_state(self) -> None:
        """Load the last saved position and configure the source."""
        if not self.state_manager:
            logger.warning("No state manager configured, skipping state loading")
            return

        position = self.state_manager.read(
            source_type=self.source.get_source_type(),
            source_id=self.source.get_source_id(),
        )

        if not position:
            logger.info("No saved state found, starting from default position")
            return

        logger.info(f"Resuming from saved position: {position}")
        self.source.set_start_position(position)
        self._last_saved_position = position

    def save_state(self, position: str) -> None:
        """Save the position of a fully processed batch."""
        if not self.state_manager or not position:
            return

        if self._last_saved_position == position:
            logger.debug(f"Position {position} already saved, skipping duplicate save")
            return

        source_type = self.source.get_source_type()
        source_id = self.source.get_source_id()

        self.state_manager.store(
            source_type=source_type,
            source_id=source_id,
            position=position,
        )
        self._last_saved_position = position

        logger.debug(f"Updated state for {source_type}:{source_id} to {position}")


class Coordinator:
    """
    Coordinator orchestrates the flow between ChangeSource, BatchProcessor
    and StateManager.

    Batches are handed to the processor one at a time, in the order the
    source yields them. A batch's position is checkpointed only after the
    processor has returned, so a failed batch is read again on restart.
    """

    def __init__(
        self,
        source: ChangeSource,
        state_manager: Optional[StateManager],
        processor: BatchProcessor,
    ) -> None:
        """
        Initialize the Coordinator.

        Args:
            source: The source to read change batches from
            state_manager: The state manager to load/save positions
            processor: Component that delivers each batch
        """
        self.source = source
        self.processor = processor
        self.state_checkpoint_manager = StateCheckpointManager(source, state_manager)

        self.delivered = 0
        self._current_iterator: Optional[Iterator[ChangeBatch]] = None

    def start(self) -> None:
        """Start the coordinator by loading state and connecting to the source."""
        try:
            self.state_checkpoint_manager.load_state()
            self.source.connect()
            logger.info("Connected to change source")
        except CdcFanoutError as e:
            error_msg = f"Failed to start coordinator: {str(e)}"
            logger.error(error_msg)
            raise ProcessingError(error_msg)

    def process_next(self) -> bool:
        """
        Process the next batch from the source.

        Returns:
            bool: True if a batch was processed, False if none was available.

        Raises:
            ProcessingError: If the batch could not be delivered or
                checkpointed. The checkpoint is left where it was.
        """
        if self._current_iterator is None:
            self._current_iterator = self.source.listen()

        try:
            batch = next(self._current_iterator)
        except StopIteration:
            self._current_iterator = None
            return False
        except CdcFanoutError as e:
            self._current_iterator = None
            error_msg = f"Error reading change batch: {str(e)}"
            logger.error(error_msg)
            raise ProcessingError(error_msg)

        try:
            written = self.processor.process(batch.changes)
            self.state_checkpoint_manager.save_state(batch.position)
        except CdcFanoutError as e:
            error_msg = f"Error processing batch at {batch.position}: {str(e)}"
            logger.error(error_msg)
            raise ProcessingError(error_msg)

        self.delivered += written
        logger.debug(
            f"Processed batch at {batch.position}: {len(batch.changes)} changes, "
            f"{written} deliveries"
        )
        return True

    def stop(self) -> None:
        """Stop the coordinator and clean up resources."""
        logger.debug("Stopping coordinator")
        self.source.disconnect()
        logger.info(f"Coordinator stopped after {self.delivered} deliveries")
