import signal
from typing import Any, Optional
from dotenv import load_dotenv

from cdc_fanout.utils.logger import Logger, logger
from cdc_fanout.config.loader import AppConfig
from cdc_fanout.config.consumers import load_consumers
from cdc_fanout.processing.coordinator import Coordinator
from cdc_fanout.processing.keyed_handler import KeyedDeliveryContext, KeyedUpsertHandler
from cdc_fanout.processing.matcher import ConsumerMatcher
from cdc_fanout.processing.message_handler import MessageHandler
from cdc_fanout.processing.processors import (
    BatchProcessor,
    FanoutProcessor,
    KeyedUpsertProcessor,
)
from cdc_fanout.processing.worker import Worker
from cdc_fanout.sources import JsonLinesChangeSource
from cdc_fanout.state import StateManagerFactory
from cdc_fanout.state.base import StateManager
from cdc_fanout.stores import DeliveryStoreFactory
from cdc_fanout.streams import StreamFactory
from cdc_fanout.utils.exceptions import ConfigurationError


def build_processor(
    app_config: AppConfig, state_manager: Optional[StateManager] = None
) -> BatchProcessor:
    """
    Create the batch processor for the configured delivery mode.

    Raises:
        ConfigurationError: If the configuration is incomplete, or if
            checkpoints would be saved durably while deliveries are not.
    """
    if app_config.delivery_mode == "keyed":
        stream = StreamFactory.create(app_config.stream_type)
        _check_durability(stream, state_manager)
        return KeyedUpsertProcessor(
            KeyedUpsertHandler(stream), KeyedDeliveryContext.from_config(app_config)
        )

    if not app_config.consumers_file:
        raise ConfigurationError("CONSUMERS_FILE is required in fanout mode")

    store = DeliveryStoreFactory.create(app_config.store_type)
    _check_durability(store, state_manager)
    matcher = ConsumerMatcher(app_config.missing_column_policy)
    return FanoutProcessor(
        MessageHandler(store, matcher), load_consumers(app_config.consumers_file)
    )


def _check_durability(target: Any, state_manager: Optional[StateManager]) -> None:
    # A checkpoint must never outlive the deliveries it covers
    if state_manager is None or not state_manager.durable or target.durable:
        return

    error_msg = (
        f"{type(target).__name__} does not persist deliveries across restarts "
        f"and cannot be used with the durable {type(state_manager).__name__} "
        "state manager"
    )
    logger.error(error_msg)
    raise ConfigurationError(error_msg)


def main() -> None:
    """
    Main entry point for the cdc-fanout application.

    This function loads configuration, sets up the logger, creates the
    source, checkpoint store and batch processor, and runs the worker until
    the source is exhausted or a shutdown signal arrives.
    """
    load_dotenv()

    logger = Logger.get_logger()

    app_config = AppConfig.load()

    if app_config.log_level != "INFO":
        Logger.update_level(app_config.log_level)
    if app_config.log_format:
        Logger.update_format(app_config.log_format)

    source = JsonLinesChangeSource(app_config.changes_file)
    state_manager = StateManagerFactory.create(app_config.state_manager_type)
    processor = build_processor(app_config, state_manager)

    coordinator = Coordinator(
        source=source,
        state_manager=state_manager,
        processor=processor,
    )

    worker = Worker(coordinator, exit_on_idle=True)

    def signal_handler(sig: Any, _frame: Any) -> None:
        logger.info("Shutdown signal received")
        worker.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    worker.run()


if __name__ == "__main__":
    main()
